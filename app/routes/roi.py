"""
ROI blueprint — calculator endpoint plus seeding and quick-improvement helpers.
"""
from flask import Blueprint, jsonify, request

from app.models.dashboard_session import current_dashboard
from app.pipeline.roi import ROIInputs, compute_roi, improve_target, seed_inputs, to_number
from app.services.benchmarks import BenchmarkStore

bp = Blueprint('roi', __name__)


def _form_values() -> dict:
    """Calculator inputs from a JSON body, a form post or query args."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.values.to_dict()


@bp.route('/api/roi', methods=['GET', 'POST'])
def calculate():
    inputs = ROIInputs.from_dict(_form_values())
    return jsonify(compute_roi(inputs).to_dict())


@bp.route('/api/roi/seed')
def seed():
    """Starting inputs: the selected dealer's numbers, else the network benchmark."""
    dashboard = current_dashboard()
    _, benchmark = BenchmarkStore().get_active()
    dealer = dashboard.selected()
    inputs = seed_inputs(dealer, benchmark)
    return jsonify({
        'dealer': dealer.dealer_name if dealer else None,
        'inputs': inputs.to_dict(),
        'result': compute_roi(inputs).to_dict(),
    })


@bp.route('/api/roi/improve', methods=['POST'])
def improve():
    """Move the target conversion by N points, or up to the network average."""
    values = _form_values()
    if values.get('to_network'):
        _, benchmark = BenchmarkStore().get_active()
        target = to_number(benchmark.get('conversionRate'))
    else:
        target = improve_target(values.get('current_conversion'), values.get('points'))

    inputs = ROIInputs.from_dict(dict(values, target_conversion=target))
    return jsonify({
        'target_conversion': target,
        'result': compute_roi(inputs).to_dict(),
    })
