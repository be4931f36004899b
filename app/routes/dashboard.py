"""
Dashboard routes — health check, lead-file upload, dealer analysis, session reset.
"""
import logging
from flask import Blueprint, jsonify, request

from app.errors import InvalidUpload, NotFound
from app.models.dashboard_session import current_dashboard
from app.pipeline.manager import process_upload
from app.pipeline.roi import seed_inputs
from app.services.benchmarks import BenchmarkStore
from app.services.reports import dealer_analysis

logger = logging.getLogger('routes.dashboard')

bp = Blueprint('dashboard', __name__)

SESSION_EXPIRED_MESSAGE = 'Session expired for security. Please re-upload your data.'
NO_DATA_MESSAGE = 'No dealer data loaded. Please upload a lead file.'


def require_dealer(dashboard, name):
    """Return the dealer's metrics or raise NotFound with the right hint."""
    metrics = dashboard.dealer(name)
    if metrics is not None:
        return metrics
    if not dashboard.dealers:
        raise NotFound(SESSION_EXPIRED_MESSAGE if dashboard.expired else NO_DATA_MESSAGE)
    raise NotFound(f"Dealer '{name}' not found in the uploaded data.")


@bp.route('/health')
def health_check():
    """Health check endpoint."""
    return jsonify({"status": "healthy"}), 200


@bp.route('/api/upload', methods=['POST'])
def upload():
    """Parse an uploaded lead export and replace this session's dealer data."""
    upload_file = request.files.get('file')
    if upload_file is None or not upload_file.filename:
        raise InvalidUpload("No file selected.")

    content = upload_file.read()
    dashboard = current_dashboard()
    summary = process_upload(upload_file.filename, content, dashboard)
    return jsonify({'status': 'success', **summary.to_dict()})


@bp.route('/api/dealers')
def list_dealers():
    dashboard = current_dashboard()
    return jsonify({
        'dealers': dashboard.dealer_names(),
        'selected': dashboard.selected_dealer,
        'source_filename': dashboard.source_filename,
        'uploaded_at': dashboard.uploaded_at,
        'form_leads': dashboard.lead_count,
        'expired': dashboard.expired,
    })


@bp.route('/api/dealers/<path:name>')
def get_dealer(name):
    """Metrics plus network comparison for one dealer."""
    dashboard = current_dashboard()
    metrics = require_dealer(dashboard, name)
    _, benchmark = BenchmarkStore().get_active()
    return jsonify(dealer_analysis(metrics, benchmark))


@bp.route('/api/dealers/<path:name>/select', methods=['POST'])
def select_dealer(name):
    """Select a dealer for reports and seed the ROI calculator with its numbers."""
    dashboard = current_dashboard()
    metrics = require_dealer(dashboard, name)
    dashboard.select(name)
    _, benchmark = BenchmarkStore().get_active()
    return jsonify({
        'dealer': dealer_analysis(metrics, benchmark),
        'roi_inputs': seed_inputs(metrics, benchmark).to_dict(),
    })


@bp.route('/api/session/reset', methods=['POST'])
def reset_session():
    """Drop all uploaded dealer data for this browser."""
    dashboard = current_dashboard()
    dashboard.clear()
    logger.info("Dashboard session %s cleared", dashboard.id)
    return jsonify({'status': 'success', 'message': 'Session data cleared'})
