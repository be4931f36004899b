"""
Reports blueprint — printable HTML reports for the selected dealer and the network.
"""
from flask import Blueprint, request

from app.errors import NotFound
from app.models.dashboard_session import current_dashboard
from app.pipeline.roi import compute_roi, report_inputs, to_number
from app.services.benchmarks import BenchmarkStore, display_name
from app.services.reports import (
    render_dealer_report, render_executive_summary,
    render_network_report, render_roi_report,
)
from app.config import DEFAULT_AVG_DEAL_VALUE

bp = Blueprint('reports', __name__)

HTML = {'Content-Type': 'text/html; charset=utf-8'}


def _selected_dealer():
    dealer = current_dashboard().selected()
    if dealer is None:
        raise NotFound("Please select a dealer from the Lead Analysis tab first.")
    return dealer


@bp.route('/reports/dealer')
def dealer_report():
    dealer = _selected_dealer()
    _, benchmark = BenchmarkStore().get_active()
    return render_dealer_report(dealer, benchmark), 200, HTML


@bp.route('/reports/executive-summary')
def executive_summary():
    dealer = _selected_dealer()
    _, benchmark = BenchmarkStore().get_active()
    deal_value = to_number(request.args.get('avg_deal_value')) or DEFAULT_AVG_DEAL_VALUE
    return render_executive_summary(dealer, benchmark, deal_value=deal_value), 200, HTML


@bp.route('/reports/roi')
def roi_report():
    result = compute_roi(report_inputs(request.args.to_dict()))
    dealer = current_dashboard().selected()
    return render_roi_report(result, dealer.dealer_name if dealer else None), 200, HTML


@bp.route('/reports/network')
def network_report():
    name, benchmark = BenchmarkStore().get_active()
    return render_network_report(benchmark, display_name(name)), 200, HTML
