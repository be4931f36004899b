"""
Benchmarks blueprint — manage named network benchmark sets.

Store errors (NotFound, AlreadyExists, ProtectedResource, InvalidBenchmark)
propagate to the app-level error handler.
"""
import json
import logging
import re
from datetime import date

from flask import Blueprint, Response, jsonify, request

from app.errors import InvalidBenchmark
from app.services.benchmarks import BenchmarkStore, display_name, parse_import

logger = logging.getLogger('routes.benchmarks')

bp = Blueprint('benchmarks', __name__)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidBenchmark("Request body must be a JSON object.")
    return data


def _state_response(store, **extra):
    name, metrics = store.get_active()
    payload = {
        'active': name,
        'active_label': display_name(name),
        'metrics': metrics,
        'sets': store.list_sets(),
    }
    payload.update(extra)
    return jsonify(payload)


@bp.route('/api/benchmarks')
def list_benchmarks():
    return _state_response(BenchmarkStore())


@bp.route('/api/benchmarks/active')
def active_benchmark():
    name, metrics = BenchmarkStore().get_active()
    return jsonify({'name': name, 'label': display_name(name), 'metrics': metrics})


@bp.route('/api/benchmarks', methods=['POST'])
def create_benchmark():
    """Create a set — a copy of the active one unless metrics are supplied."""
    data = _json_body()
    store = BenchmarkStore()
    store.create(data.get('name'), data.get('metrics'))
    return _state_response(store), 201


@bp.route('/api/benchmarks/default/reset', methods=['POST'])
def reset_default_benchmark():
    store = BenchmarkStore()
    store.reset_default()
    return _state_response(store)


@bp.route('/api/benchmarks/import', methods=['POST'])
def import_benchmark():
    """Import an exported set from an uploaded file or a JSON body; it becomes active."""
    upload_file = request.files.get('file')
    if upload_file is not None:
        try:
            payload = json.loads(upload_file.read().decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise InvalidBenchmark(f"Error importing file: {e}")
    else:
        payload = request.get_json(silent=True)

    name, metrics = parse_import(payload)
    store = BenchmarkStore()
    store.import_set(name, metrics)
    return _state_response(store, message='Benchmarks imported successfully!'), 201


# Set names are free text and may contain '/', so they are captured with the
# path converter. Suffixed routes are registered before the bare-name ones.

@bp.route('/api/benchmarks/<path:name>/activate', methods=['POST'])
def activate_benchmark(name):
    store = BenchmarkStore()
    store.activate(name)
    return _state_response(store)


@bp.route('/api/benchmarks/<path:name>/export')
def export_benchmark(name):
    """Download one set as a JSON interchange file."""
    document = BenchmarkStore().export(name)
    stem = re.sub(r'[\\/"]', '-', name)
    filename = f"benchmark-{stem}-{date.today().isoformat()}.json"
    return Response(
        json.dumps(document, indent=2),
        mimetype='application/json',
        headers={'Content-Disposition': f'attachment; filename="{filename}"'},
    )


@bp.route('/api/benchmarks/<path:name>', methods=['PUT'])
def save_benchmark(name):
    data = _json_body()
    store = BenchmarkStore()
    store.save(name, data.get('metrics', data))
    return _state_response(store, message='Benchmarks saved successfully!')


@bp.route('/api/benchmarks/<path:name>', methods=['DELETE'])
def delete_benchmark(name):
    store = BenchmarkStore()
    store.delete(name)
    return _state_response(store)
