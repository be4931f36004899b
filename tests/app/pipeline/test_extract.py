"""Tests for app.pipeline.extract — CSV, XLSX and XLS readers and the shared row layout."""
import io
from datetime import datetime
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from app.errors import InvalidUpload, MalformedInput
from app.pipeline.extract import (
    DelimitedTextExtractor, XlsExtractor, XlsxExtractor,
    _cell_text, extract, file_extension,
)

HEADERS = ['Lead Type', 'Lead Date', 'Response Date', 'Sale Date', 'Lead Source']


def _xlsx_bytes(dealer_name='Example Motors', headers=HEADERS, rows=()):
    """Build a workbook in the CRM template layout (1-based rows: B2, 10, 12+)."""
    import openpyxl

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.cell(row=1, column=1, value='Lead Activity Report')
    if dealer_name is not None:
        ws.cell(row=2, column=1, value='Dealer Name:')
        ws.cell(row=2, column=2, value=dealer_name)
    for col, header in enumerate(headers, start=1):
        ws.cell(row=10, column=col, value=header)
    for offset, row in enumerate(rows):
        for col, value in enumerate(row, start=1):
            ws.cell(row=12 + offset, column=col, value=value)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


# ── Cell rendering ───────────────────────────────────────────────────────────

class TestCellText:

    def test_none_is_empty(self):
        assert _cell_text(None) == ''

    def test_datetime_rendered_month_first(self):
        assert _cell_text(datetime(2025, 3, 7, 14, 30)) == '03/07/2025'

    def test_integral_float_drops_decimal(self):
        assert _cell_text(42.0) == '42'

    def test_fractional_float_kept(self):
        assert _cell_text(4.5) == '4.5'

    def test_string_passthrough(self):
        assert _cell_text('Form') == 'Form'


class TestFileExtension:

    def test_lowercased(self):
        assert file_extension('Leads.CSV') == '.csv'

    def test_no_extension(self):
        assert file_extension('leads') == ''

    def test_none(self):
        assert file_extension(None) == ''


# ── Delimited text ───────────────────────────────────────────────────────────

class TestDelimitedText:

    def test_scenario_rows_extracted(self, scenario_csv):
        rows = extract('leads.csv', scenario_csv)
        assert len(rows) == 10
        assert rows[0] == {
            'Lead Type': 'Form',
            'Lead Date': '01/05/2025',
            'Response Date': '01/05/2025',
            'Sale Date': '01/20/2025',
            'Lead Source': 'Website',
            'Dealer Name': 'Example Motors',
        }

    def test_every_row_carries_dealer_name(self, scenario_csv):
        rows = extract('leads.csv', scenario_csv)
        assert {row['Dealer Name'] for row in rows} == {'Example Motors'}

    def test_header_quotes_removed(self, scenario_csv):
        rows = extract('leads.csv', scenario_csv)
        assert 'Lead Type' in rows[0]
        assert '"Lead Type"' not in rows[0]

    def test_crlf_line_endings(self, make_lead_csv, scenario_rows):
        content = make_lead_csv(HEADERS, scenario_rows, line_ending='\r\n')
        rows = extract('leads.csv', content)
        assert len(rows) == 10
        assert rows[-1]['Lead Source'] == 'Referral'

    def test_trailing_newline_not_a_row(self, scenario_csv):
        rows = extract('leads.csv', scenario_csv + b'\n')
        assert len(rows) == 10

    def test_blank_rows_dropped(self, make_lead_csv):
        content = make_lead_csv(HEADERS, [
            ['Form', '01/05/2025', '', '', 'Website'],
            ['', '', '', '', ''],
            ['Phone', '01/06/2025', '', '', 'Walk-in'],
        ])
        rows = extract('leads.csv', content)
        assert [row['Lead Type'] for row in rows] == ['Form', 'Phone']

    def test_short_row_padded(self, make_lead_csv):
        content = make_lead_csv(HEADERS, [['Form', '01/05/2025']])
        row = extract('leads.csv', content)[0]
        assert row['Sale Date'] == ''
        assert row['Lead Source'] == ''

    def test_extra_values_ignored(self, make_lead_csv):
        content = make_lead_csv(HEADERS, [['Form', '01/05/2025', '', '', 'Website', 'extra']])
        row = extract('leads.csv', content)[0]
        assert 'extra' not in row.values()

    def test_missing_dealer_name_is_unknown(self, make_lead_csv, scenario_rows):
        content = make_lead_csv(HEADERS, scenario_rows, dealer_name=None)
        rows = extract('leads.csv', content)
        assert rows[0]['Dealer Name'] == 'Unknown Dealer'

    def test_blank_dealer_name_is_unknown(self, make_lead_csv, scenario_rows):
        content = make_lead_csv(HEADERS, scenario_rows, dealer_name='   ')
        rows = extract('leads.csv', content)
        assert rows[0]['Dealer Name'] == 'Unknown Dealer'

    def test_cells_sanitized(self, make_lead_csv):
        content = make_lead_csv(HEADERS, [
            ['Form', '01/05/2025', '', '', '<b>Website</b>'],
            ['Form', '01/05/2025', '', '', 'javascript:alert(1)'],
        ])
        rows = extract('leads.csv', content)
        assert rows[0]['Lead Source'] == 'Website'
        assert rows[1]['Lead Source'] == 'alert(1)'

    def test_dealer_name_sanitized(self, make_lead_csv, scenario_rows):
        content = make_lead_csv(HEADERS, scenario_rows, dealer_name='<script>x</script>Example Motors')
        rows = extract('leads.csv', content)
        assert rows[0]['Dealer Name'] == 'xExample Motors'

    def test_quoted_separator_still_splits(self, make_lead_csv):
        """Known limitation of the naive split: a quoted comma is a field break."""
        content = make_lead_csv(HEADERS, [['Form', '01/05/2025', '', '', '"Smith, Jones"']])
        row = extract('leads.csv', content)[0]
        assert row['Lead Source'] == '"Smith'

    def test_only_enclosing_quotes_stripped(self, make_lead_csv):
        content = make_lead_csv(HEADERS, [['"Form"', '01/05/2025', '', '', 'The "Best" Source']])
        row = extract('leads.csv', content)[0]
        assert row['Lead Type'] == 'Form'
        assert row['Lead Source'] == 'The "Best" Source'

    def test_cp1252_fallback(self, make_lead_csv, scenario_rows):
        content = make_lead_csv(HEADERS, scenario_rows).replace(b'Example Motors', 'Caf\xe9 Motors'.encode('cp1252'))
        rows = extract('leads.csv', content)
        assert rows[0]['Dealer Name'] == 'Caf\xe9 Motors'

    def test_utf8_bom_stripped(self, scenario_csv):
        rows = extract('leads.csv', b'\xef\xbb\xbf' + scenario_csv)
        assert len(rows) == 10

    def test_accepts_text(self, scenario_csv):
        rows = DelimitedTextExtractor().extract(scenario_csv.decode('utf-8'))
        assert len(rows) == 10

    def test_idempotent(self, scenario_csv):
        assert extract('leads.csv', scenario_csv) == extract('leads.csv', scenario_csv)


class TestLayoutErrors:

    def test_too_few_rows_for_header(self):
        with pytest.raises(MalformedInput, match='row 10'):
            extract('leads.csv', b'a,b\nc,d\n')

    def test_blank_header_row(self, make_lead_csv):
        content = make_lead_csv(['', '', ''], [['Form', '01/05/2025', 'Website']])
        with pytest.raises(MalformedInput, match='empty'):
            extract('leads.csv', content)

    def test_no_data_rows(self, make_lead_csv):
        content = make_lead_csv(HEADERS, [])
        with pytest.raises(MalformedInput, match='no data rows'):
            extract('leads.csv', content)

    def test_unsupported_extension(self, scenario_csv):
        with pytest.raises(InvalidUpload):
            extract('leads.txt', scenario_csv)


# ── XLSX ─────────────────────────────────────────────────────────────────────

class TestXlsx:

    def test_reads_template_layout(self):
        content = _xlsx_bytes(rows=[
            ['Form', datetime(2025, 1, 5), datetime(2025, 1, 5), None, 'Website'],
            ['Phone', datetime(2025, 2, 9), None, None, 'Walk-in'],
        ])
        rows = extract('leads.xlsx', content)
        assert len(rows) == 2
        assert rows[0]['Dealer Name'] == 'Example Motors'
        assert rows[0]['Lead Date'] == '01/05/2025'
        assert rows[0]['Sale Date'] == ''
        assert rows[1]['Lead Type'] == 'Phone'

    def test_numbers_rendered_as_text(self):
        content = _xlsx_bytes(headers=['Lead Type', 'Count'], rows=[['Form', 3]])
        rows = XlsxExtractor().extract(content)
        assert rows[0]['Count'] == '3'

    def test_missing_dealer_name(self):
        content = _xlsx_bytes(dealer_name=None, rows=[['Form', datetime(2025, 1, 5)]])
        rows = extract('leads.xlsx', content)
        assert rows[0]['Dealer Name'] == 'Unknown Dealer'

    def test_no_data_rows(self):
        with pytest.raises(MalformedInput):
            extract('leads.xlsx', _xlsx_bytes(rows=[]))

    def test_corrupt_workbook(self):
        with pytest.raises(MalformedInput, match='Excel'):
            extract('leads.xlsx', b'not a zip file')


# ── XLS ──────────────────────────────────────────────────────────────────────

def _fake_book(grid):
    """Stand-in for an xlrd Book; cells are (ctype, value) pairs."""
    import xlrd

    ncols = max(len(row) for row in grid)

    def cell(r, c):
        row = grid[r]
        if c < len(row):
            ctype, value = row[c]
        else:
            ctype, value = xlrd.XL_CELL_EMPTY, ''
        return SimpleNamespace(ctype=ctype, value=value)

    sheet = SimpleNamespace(nrows=len(grid), ncols=ncols, cell=cell)
    return SimpleNamespace(datemode=0, sheet_by_index=lambda i: sheet)


class TestXls:

    def test_reads_grid_and_dates(self):
        import xlrd

        text = xlrd.XL_CELL_TEXT
        empty = [(xlrd.XL_CELL_EMPTY, '')]
        grid = [empty] * 12
        grid[1] = [(text, 'Dealer Name:'), (text, 'Legacy Auto')]
        grid[9] = [(text, 'Lead Type'), (text, 'Lead Date'), (text, 'Lead Source')]
        grid.append([(text, 'Form'), (xlrd.XL_CELL_DATE, 45662.0), (text, 'Website')])

        with patch('xlrd.open_workbook', return_value=_fake_book(grid)):
            rows = XlsExtractor().extract(b'\xd0\xcf\x11\xe0')

        assert rows == [{
            'Lead Type': 'Form',
            'Lead Date': '01/05/2025',
            'Lead Source': 'Website',
            'Dealer Name': 'Legacy Auto',
        }]

    def test_unreadable_workbook(self):
        with patch('xlrd.open_workbook', side_effect=ValueError('bad header')):
            with pytest.raises(MalformedInput, match='bad header'):
                extract('leads.xls', b'garbage')
