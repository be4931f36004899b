"""
Dealer aggregation — Form leads → one DealerMetrics per dealer.

Rates are computed in Decimal and rounded half-up so that
response_rate + no_response_rate is exactly 100.
"""
import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional

from app.config import (
    ALL_DEALERS, DATE_ALIASES, DEALER_COLUMN, DEFAULT_DATA_MONTHS,
    RESPONSE_DATE_COLUMN, SALE_DATE_COLUMN, SOURCE_ALIASES, UNKNOWN_SOURCE,
)
from app.pipeline.base import DealerMetrics, RawRow

logger = logging.getLogger('pipeline.aggregate')

_TWO_PLACES = Decimal('0.01')
_ONE_PLACE = Decimal('0.1')

# Tried in order after ISO-8601.
_DATE_FORMATS = [
    '%m/%d/%Y %I:%M:%S %p',
    '%m/%d/%Y %I:%M %p',
    '%m/%d/%Y %H:%M:%S',
    '%m/%d/%Y %H:%M',
    '%m/%d/%Y',
    '%m/%d/%y',
    '%m-%d-%Y',
    '%Y/%m/%d',
    '%b %d, %Y',
    '%B %d, %Y',
    '%d %b %Y',
]


def first_value(row: RawRow, aliases: List[str]) -> str:
    """Return the first non-blank value among the aliased columns."""
    for alias in aliases:
        value = row.get(alias)
        if value and value.strip():
            return value
    return ''


def parse_lead_date(value: str) -> Optional[datetime]:
    """Parse a lead date, or None when no known format matches."""
    value = (value or '').strip()
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def month_span(earliest: datetime, latest: datetime) -> int:
    """Inclusive number of calendar months between two dates, at least 1."""
    months = (latest.year - earliest.year) * 12 + (latest.month - earliest.month) + 1
    return max(1, months)


def percentage(part: int, whole: int, places: Decimal) -> Decimal:
    if whole <= 0:
        return Decimal(0).quantize(places)
    return (Decimal(part) * 100 / Decimal(whole)).quantize(places, rounding=ROUND_HALF_UP)


def round_half_up(value) -> int:
    return int(Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _has_value(row: RawRow, column: str) -> bool:
    value = row.get(column)
    return bool(value and value.strip())


def _no_response(row: RawRow) -> bool:
    value = row.get(RESPONSE_DATE_COLUMN)
    return not value or value == 'N/A' or not value.strip()


def analyze_dealer(leads: List[RawRow], dealer_name: str) -> DealerMetrics:
    total_leads = len(leads)
    total_sales = sum(1 for lead in leads if _has_value(lead, SALE_DATE_COLUMN))
    no_response_count = sum(1 for lead in leads if _no_response(lead))

    earliest = latest = None
    leads_by_source: Dict[str, int] = {}
    for lead in leads:
        lead_date = parse_lead_date(first_value(lead, DATE_ALIASES))
        if lead_date is not None:
            lead_date = lead_date.replace(tzinfo=None)
            if earliest is None or lead_date < earliest:
                earliest = lead_date
            if latest is None or lead_date > latest:
                latest = lead_date

        source = first_value(lead, SOURCE_ALIASES) or UNKNOWN_SOURCE
        leads_by_source[source] = leads_by_source.get(source, 0) + 1

    if earliest is not None:
        data_months = month_span(earliest, latest)
    else:
        data_months = DEFAULT_DATA_MONTHS

    no_response_rate = percentage(no_response_count, total_leads, _ONE_PLACE)

    return DealerMetrics(
        dealer_name=dealer_name,
        total_leads=total_leads,
        total_sales=total_sales,
        conversion_rate=str(percentage(total_sales, total_leads, _TWO_PLACES)),
        no_response_count=no_response_count,
        no_response_rate=str(no_response_rate),
        response_rate=str(Decimal(100).quantize(_ONE_PLACE) - no_response_rate),
        leads_by_source=leads_by_source,
        data_months=data_months,
        monthly_lead_average=round_half_up(Decimal(total_leads) / Decimal(data_months)),
    )


def aggregate(leads: List[RawRow]) -> Dict[str, DealerMetrics]:
    """Group leads by dealer name and compute each dealer's metrics.

    Rows with a blank dealer name are left out; when no row has one, every
    lead lands in a single 'All Dealers' bucket.
    """
    groups: Dict[str, List[RawRow]] = {}
    for lead in leads:
        name = lead.get(DEALER_COLUMN) or ''
        if name:
            groups.setdefault(name, []).append(lead)

    if not groups:
        if not leads:
            return {}
        groups = {ALL_DEALERS: list(leads)}

    dealers = {name: analyze_dealer(group, name) for name, group in groups.items()}
    logger.info("Aggregated %d leads into %d dealer(s)", len(leads), len(dealers))
    return dealers
