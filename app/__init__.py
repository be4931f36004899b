"""
Flask application factory.

Creates and configures the Flask app, registers all blueprints.
"""
import logging
import os
from flask import Flask, jsonify

from app.errors import DashboardError

logger = logging.getLogger('app')


def create_app():
    """Create and configure the Flask application."""
    from app.logging_config import configure_logging
    from app.config import MAX_UPLOAD_BYTES, SECRET_KEY

    app = Flask(
        __name__,
        template_folder=os.path.join(os.path.dirname(os.path.dirname(__file__)), 'templates'),
    )

    configure_logging(app)

    # Secret key for the cookie that carries the dashboard session id
    app.secret_key = SECRET_KEY

    # Leave headroom for multipart overhead; the pipeline enforces the exact limit
    app.config['MAX_CONTENT_LENGTH'] = MAX_UPLOAD_BYTES + 1024 * 1024

    # ── Error handling ──────────────────────────────────────────────────
    @app.errorhandler(DashboardError)
    def handle_dashboard_error(error):
        logger.warning("%s: %s", error.code, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(413)
    def handle_too_large(error):
        return jsonify({
            'error': 'invalid_upload',
            'message': f'File too large. Maximum size is {MAX_UPLOAD_BYTES // (1024 * 1024)}MB.',
        }), 413

    # Register blueprints
    from app.routes.dashboard import bp as dashboard_bp
    from app.routes.benchmarks import bp as benchmarks_bp
    from app.routes.roi import bp as roi_bp
    from app.routes.reports import bp as reports_bp

    app.register_blueprint(dashboard_bp)
    app.register_blueprint(benchmarks_bp)
    app.register_blueprint(roi_bp)
    app.register_blueprint(reports_bp)

    from app.database import init_db
    init_db()

    return app
