"""Tests for app.pipeline.classify — lead-type column lookup and Form filtering."""
import pytest

from app.pipeline.classify import classify, find_lead_type_column, is_form_lead


class TestFindLeadTypeColumn:

    def test_empty_rows(self):
        assert find_lead_type_column([]) is None

    def test_primary_alias(self):
        assert find_lead_type_column([{'Lead Type': 'Form', 'Type': 'x'}]) == 'Lead Type'

    def test_alias_priority_order(self):
        """'LeadType' outranks the generic 'Type' column."""
        assert find_lead_type_column([{'Type': 'x', 'LeadType': 'Form'}]) == 'LeadType'

    @pytest.mark.parametrize('alias', ['LeadType', 'lead type', 'LEAD TYPE', 'Type'])
    def test_each_alias_recognized(self, alias):
        assert find_lead_type_column([{alias: 'Form'}]) == alias

    def test_only_first_row_consulted(self):
        rows = [{'Category': 'Form'}, {'Lead Type': 'Form'}]
        assert find_lead_type_column(rows) is None

    def test_unrecognized(self):
        assert find_lead_type_column([{'Kind': 'Form'}]) is None


class TestIsFormLead:

    @pytest.mark.parametrize('value', ['Form', 'form', 'FORM', '  form  ', 'Web Form', 'Form Submission'])
    def test_form_values(self, value):
        assert is_form_lead(value)

    @pytest.mark.parametrize('value', ['', None, 'Phone', 'Walk-in', 'web form', 'forms', 'formal'])
    def test_non_form_values(self, value):
        assert not is_form_lead(value)

    def test_case_sensitive_substring(self):
        """Only the capitalized token matches inside a longer label."""
        assert is_form_lead('Internet Form')
        assert not is_form_lead('internet form')


class TestClassify:

    def test_keeps_only_form_leads(self, make_lead):
        rows = [
            make_lead(),
            make_lead(**{'Lead Type': 'Phone'}),
            make_lead(**{'Lead Type': 'Web Form'}),
            make_lead(**{'Lead Type': ''}),
        ]
        leads = classify(rows)
        assert [row['Lead Type'] for row in leads] == ['Form', 'Web Form']

    def test_rows_returned_unchanged(self, make_lead):
        row = make_lead()
        assert classify([row]) == [row]

    def test_preserves_order(self, make_lead):
        rows = [make_lead(**{'Lead Source': str(i)}) for i in range(5)]
        assert [row['Lead Source'] for row in classify(rows)] == ['0', '1', '2', '3', '4']

    def test_alias_column(self):
        rows = [{'Type': 'Form', 'Dealer Name': 'A'}, {'Type': 'Phone', 'Dealer Name': 'A'}]
        assert len(classify(rows)) == 1

    def test_no_lead_type_column(self):
        """No recognized column → nothing qualifies."""
        rows = [{'Category': 'Form', 'Dealer Name': 'A'}] * 3
        assert classify(rows) == []

    def test_no_lead_type_column_logs_warning(self, caplog):
        with caplog.at_level('WARNING', logger='pipeline.classify'):
            classify([{'Category': 'Form'}])
        assert 'No lead type column' in caplog.text

    def test_empty_input(self):
        assert classify([]) == []

    def test_scenario_counts(self, scenario_csv):
        from app.pipeline.extract import extract

        leads = classify(extract('leads.csv', scenario_csv))
        assert len(leads) == 6
