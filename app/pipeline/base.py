"""
Pipeline contracts.

Every file format implements Extractor.read_grid() and the shared extract()
turns the grid into RawRows using the fixed template layout. The aggregator
emits one DealerMetrics per dealer.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Type

from app.config import (
    DATA_START_ROW_INDEX, DEALER_COLUMN, DEALER_NAME_COLUMN_INDEX,
    DEALER_NAME_ROW_INDEX, HEADER_ROW_INDEX, UNKNOWN_DEALER,
)
from app.errors import InvalidUpload, MalformedInput
from app.services.sanitize import sanitize_cell

RawRow = Dict[str, str]


@dataclass
class DealerMetrics:
    """Per-dealer aggregate over its Form leads.

    Rates are fixed-point strings ("50.00", "33.3"), rounded half-up.
    """
    dealer_name: str
    total_leads: int = 0
    total_sales: int = 0
    conversion_rate: str = '0.00'
    no_response_count: int = 0
    no_response_rate: str = '0.0'
    response_rate: str = '100.0'
    leads_by_source: Dict[str, int] = field(default_factory=dict)
    data_months: int = 6
    monthly_lead_average: int = 0

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> 'DealerMetrics':
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


class Extractor(ABC):
    """
    Base class for all lead-file readers.

    Subclasses only turn raw bytes into a grid of cell strings; the header,
    data and dealer-name positions are applied here so every format shares
    one layout contract.
    """
    extension: str = ''
    description: str = ''

    @abstractmethod
    def read_grid(self, content: bytes) -> List[List[str]]:
        """Return every physical row of the first sheet as a list of cell strings."""
        ...

    def clean_header(self, value: str) -> str:
        return (value or '').strip()

    def clean_value(self, value: str) -> str:
        return sanitize_cell(value)

    def dealer_name(self, grid: List[List[str]]) -> str:
        row = grid[DEALER_NAME_ROW_INDEX] if len(grid) > DEALER_NAME_ROW_INDEX else []
        raw = row[DEALER_NAME_COLUMN_INDEX] if len(row) > DEALER_NAME_COLUMN_INDEX else ''
        name = sanitize_cell(raw)
        return name or UNKNOWN_DEALER

    def extract(self, content: bytes) -> List[RawRow]:
        grid = self.read_grid(content)

        if len(grid) <= HEADER_ROW_INDEX:
            raise MalformedInput(
                f"File has {len(grid)} rows; expected column headers on row {HEADER_ROW_INDEX + 1}."
            )
        headers = [self.clean_header(h) for h in grid[HEADER_ROW_INDEX]]
        if not any(headers):
            raise MalformedInput(f"Header row {HEADER_ROW_INDEX + 1} is empty.")
        if len(grid) <= DATA_START_ROW_INDEX:
            raise MalformedInput(
                f"File has no data rows; lead data should start on row {DATA_START_ROW_INDEX + 1}."
            )

        dealer_name = self.dealer_name(grid)
        rows = []
        for values in grid[DATA_START_ROW_INDEX:]:
            row = {}
            for index, header in enumerate(headers):
                row[header] = self.clean_value(values[index]) if index < len(values) else ''
            if not any(v != '' for v in row.values()):
                continue
            row[DEALER_COLUMN] = dealer_name
            rows.append(row)
        return rows


def get_extractor(extractors: Dict[str, Type[Extractor]], extension: str) -> Extractor:
    """Look up and instantiate the extractor for a file extension."""
    extractor_cls = extractors.get(extension.lower())
    if not extractor_cls:
        raise InvalidUpload(
            f"Unsupported file type '{extension}'. Please upload a CSV or Excel file."
        )
    return extractor_cls()
