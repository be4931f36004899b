"""
Tabular extraction — lead-activity exports (CSV / XLSX / XLS) → RawRows.

All formats share the CRM template layout from app.config: dealer name in B2,
column headers on row 10, lead data from row 12 onward. Only the grid
reading differs per format.
"""
import io
import logging
import os
from datetime import date, datetime
from typing import List

from app.config import FIELD_SEPARATOR
from app.errors import MalformedInput
from app.pipeline.base import Extractor, RawRow, get_extractor

logger = logging.getLogger('pipeline.extract')


def _cell_text(value) -> str:
    """Render a workbook cell the way the sheet displays it."""
    if value is None:
        return ''
    if isinstance(value, (datetime, date)):
        return value.strftime('%m/%d/%Y')
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _unquote(field: str) -> str:
    """Strip one layer of enclosing double quotes."""
    if len(field) >= 2 and field.startswith('"') and field.endswith('"'):
        return field[1:-1]
    return field


class DelimitedTextExtractor(Extractor):
    """
    Naive comma-split reader.

    Enclosing quotes are stripped from each field, but a separator inside a
    quoted field still splits it. Exports from the CRM template never quote
    separators, so the simple split is kept.
    """
    extension = '.csv'
    description = 'Comma-separated lead export'

    def decode(self, content) -> str:
        if isinstance(content, str):
            return content
        try:
            return content.decode('utf-8-sig')
        except UnicodeDecodeError:
            try:
                return content.decode('cp1252')
            except UnicodeDecodeError as e:
                raise MalformedInput(f"Could not decode CSV file: {e}") from e

    def read_grid(self, content) -> List[List[str]]:
        text = self.decode(content)
        grid = []
        for line in text.split('\n'):
            line = line.rstrip('\r')
            grid.append([_unquote(field) for field in line.split(FIELD_SEPARATOR)])
        return grid


class XlsxExtractor(Extractor):
    """First worksheet of an Office Open XML workbook, read with openpyxl."""
    extension = '.xlsx'
    description = 'Excel workbook (openpyxl)'

    def read_grid(self, content: bytes) -> List[List[str]]:
        import openpyxl

        try:
            wb = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        except Exception as e:
            raise MalformedInput(f"Could not open Excel workbook: {e}") from e
        try:
            sheet = wb[wb.sheetnames[0]]
            # min_row=1 keeps leading blank rows so the fixed offsets line up
            return [
                [_cell_text(v) for v in row]
                for row in sheet.iter_rows(min_row=1, values_only=True)
            ]
        finally:
            wb.close()


class XlsExtractor(Extractor):
    """First worksheet of a legacy BIFF workbook, read with xlrd."""
    extension = '.xls'
    description = 'Legacy Excel workbook (xlrd)'

    def read_grid(self, content: bytes) -> List[List[str]]:
        import xlrd

        try:
            book = xlrd.open_workbook(file_contents=content)
        except Exception as e:
            raise MalformedInput(f"Could not open Excel workbook: {e}") from e
        sheet = book.sheet_by_index(0)
        grid = []
        for r in range(sheet.nrows):
            row = []
            for c in range(sheet.ncols):
                cell = sheet.cell(r, c)
                if cell.ctype == xlrd.XL_CELL_DATE:
                    row.append(_cell_text(xlrd.xldate_as_datetime(cell.value, book.datemode)))
                else:
                    row.append(_cell_text(cell.value))
            grid.append(row)
        return grid


EXTRACTORS = {
    '.csv': DelimitedTextExtractor,
    '.xlsx': XlsxExtractor,
    '.xls': XlsExtractor,
}


def file_extension(filename: str) -> str:
    return os.path.splitext(filename or '')[1].lower()


def extract(filename: str, content) -> List[RawRow]:
    """Parse a lead export into RawRows, picking the reader from the extension."""
    extractor = get_extractor(EXTRACTORS, file_extension(filename))
    rows = extractor.extract(content)
    logger.info("Extracted %d data rows from %s file", len(rows), extractor.extension)
    return rows
