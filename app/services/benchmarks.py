"""
Benchmarks service — named network-wide comparison sets plus the active pointer.

The whole collection lives in one BenchmarkState row. Every mutation loads
it, changes a copy and commits in a single session, so a later read never
sees a half-applied change.
"""
import copy
import logging
import math
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from app.config import (
    BENCHMARK_INT_FIELDS, BENCHMARK_STATE_KEY, DEFAULT_BENCHMARK_LABEL,
    DEFAULT_BENCHMARK_NAME, DEFAULT_BENCHMARKS,
)
from app.database import get_session
from app.errors import AlreadyExists, InvalidBenchmark, NotFound, ProtectedResource
from app.models.benchmark_state import BenchmarkState

logger = logging.getLogger('services.benchmarks')

METRIC_FIELDS = list(DEFAULT_BENCHMARKS.keys())


def initial_state() -> Dict:
    return {
        'benchmarkSets': {DEFAULT_BENCHMARK_NAME: dict(DEFAULT_BENCHMARKS)},
        'activeBenchmark': DEFAULT_BENCHMARK_NAME,
    }


def display_name(name: str) -> str:
    return DEFAULT_BENCHMARK_LABEL if name == DEFAULT_BENCHMARK_NAME else name


def normalize_metrics(metrics) -> Dict:
    """Coerce a metrics mapping to the stored shape; reject missing or non-numeric fields."""
    if not isinstance(metrics, dict):
        raise InvalidBenchmark("Benchmark metrics must be an object.")
    normalized = {}
    for field in METRIC_FIELDS:
        value = metrics.get(field)
        if value is None or value == '' or isinstance(value, bool):
            raise InvalidBenchmark(f"Benchmark field '{field}' is required.")
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise InvalidBenchmark(f"Benchmark field '{field}' must be a number.")
        if not math.isfinite(number):
            raise InvalidBenchmark(f"Benchmark field '{field}' must be a finite number.")
        normalized[field] = int(number) if field in BENCHMARK_INT_FIELDS else number
    return normalized


def parse_import(payload) -> Tuple[str, Dict]:
    """Validate an exported benchmark document; returns (name, metrics)."""
    if not isinstance(payload, dict) or not isinstance(payload.get('metrics'), dict):
        raise InvalidBenchmark("Invalid benchmark file format.")
    name = (payload.get('name') or '').strip()
    if not name:
        name = f"Imported {datetime.now().strftime('%m/%d/%Y')}"
    return name, payload['metrics']


class BenchmarkStore:
    """
    Benchmark sets persisted as one keyed record.

    Usage:
        store = BenchmarkStore()
        name, metrics = store.get_active()
        store.create('Q3 2025')
        store.delete('Q3 2025')
    """

    def __init__(self, key: str = BENCHMARK_STATE_KEY):
        self.key = key

    # ── Persistence ───────────────────────────────────────────────────

    def _load(self, session) -> BenchmarkState:
        """Fetch the state row, seeding the default set on first-ever use."""
        state = session.get(BenchmarkState, self.key)
        if state is None:
            state = BenchmarkState(key=self.key, data=initial_state())
            session.add(state)
            session.flush()
            logger.info("Initialized benchmark store with default set")
        return state

    def _read(self) -> Dict:
        session = get_session()
        try:
            state = self._load(session)
            data = copy.deepcopy(state.data)
            session.commit()
            return data
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def _mutate(self, change) -> Dict:
        """Apply change(data) to a copy of the state and commit it atomically."""
        session = get_session()
        try:
            state = self._load(session)
            data = copy.deepcopy(state.data)
            result = change(data)
            # Reassign so the JSON column is flagged dirty
            state.data = data
            session.commit()
            return result
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ── Reads ─────────────────────────────────────────────────────────

    def get_active(self) -> Tuple[str, Dict]:
        data = self._read()
        name = data['activeBenchmark']
        sets = data['benchmarkSets']
        if name not in sets:
            name = DEFAULT_BENCHMARK_NAME
        return name, dict(sets[name])

    def get(self, name: str) -> Dict:
        sets = self._read()['benchmarkSets']
        if name not in sets:
            raise NotFound(f"Benchmark set '{name}' not found.")
        return dict(sets[name])

    def list_sets(self) -> List[Dict]:
        data = self._read()
        return [
            {
                'name': name,
                'label': display_name(name),
                'active': name == data['activeBenchmark'],
                'protected': name == DEFAULT_BENCHMARK_NAME,
                'metrics': metrics,
            }
            for name, metrics in data['benchmarkSets'].items()
        ]

    def export(self, name: str) -> Dict:
        metrics = self.get(name)
        return {
            'name': display_name(name),
            'date': datetime.now(timezone.utc).isoformat(),
            'metrics': metrics,
        }

    # ── Mutations ─────────────────────────────────────────────────────

    def save(self, name: str, metrics: Dict) -> Dict:
        metrics = normalize_metrics(metrics)

        def change(data):
            if name not in data['benchmarkSets']:
                raise NotFound(f"Benchmark set '{name}' not found.")
            data['benchmarkSets'][name] = metrics
            return metrics

        result = self._mutate(change)
        logger.info("Saved benchmark set '%s'", name)
        return result

    def activate(self, name: str) -> Dict:
        def change(data):
            if name not in data['benchmarkSets']:
                raise NotFound(f"Benchmark set '{name}' not found.")
            data['activeBenchmark'] = name
            return dict(data['benchmarkSets'][name])

        result = self._mutate(change)
        logger.info("Activated benchmark set '%s'", name)
        return result

    def delete(self, name: str) -> str:
        """Remove a set; returns the active set name afterwards."""
        if name == DEFAULT_BENCHMARK_NAME:
            raise ProtectedResource("Cannot delete the default benchmark set.")

        def change(data):
            if name not in data['benchmarkSets']:
                raise NotFound(f"Benchmark set '{name}' not found.")
            del data['benchmarkSets'][name]
            if data['activeBenchmark'] == name:
                data['activeBenchmark'] = DEFAULT_BENCHMARK_NAME
            return data['activeBenchmark']

        active = self._mutate(change)
        logger.info("Deleted benchmark set '%s' (active: '%s')", name, active)
        return active

    def create(self, name: str, seed_metrics: Optional[Dict] = None) -> Dict:
        """Add a new set (copy of the active one unless seeded) and activate it."""
        name = (name or '').strip()
        if not name:
            raise InvalidBenchmark("Benchmark set name is required.")
        seed = normalize_metrics(seed_metrics) if seed_metrics is not None else None

        def change(data):
            sets = data['benchmarkSets']
            if name in sets:
                raise AlreadyExists(f"A benchmark set named '{name}' already exists.")
            metrics = seed or dict(sets.get(data['activeBenchmark'], sets[DEFAULT_BENCHMARK_NAME]))
            sets[name] = metrics
            data['activeBenchmark'] = name
            return dict(metrics)

        result = self._mutate(change)
        logger.info("Created benchmark set '%s'", name)
        return result

    def import_set(self, name: str, metrics: Dict) -> Dict:
        """Store imported metrics under `name` (replacing any same-named set) and activate it."""
        name = (name or '').strip()
        if not name:
            raise InvalidBenchmark("Benchmark set name is required.")
        metrics = normalize_metrics(metrics)

        def change(data):
            data['benchmarkSets'][name] = metrics
            data['activeBenchmark'] = name
            return dict(metrics)

        result = self._mutate(change)
        logger.info("Imported benchmark set '%s'", name)
        return result

    def reset_default(self) -> Dict:
        """Restore the default set's seed values."""
        def change(data):
            data['benchmarkSets'][DEFAULT_BENCHMARK_NAME] = dict(DEFAULT_BENCHMARKS)
            return dict(DEFAULT_BENCHMARKS)

        result = self._mutate(change)
        logger.info("Reset default benchmark set")
        return result
