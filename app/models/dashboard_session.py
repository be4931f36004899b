"""
DashboardSession model — Redis-backed per-browser dashboard state.

Holds the dealer metrics of the last upload and the selected dealer. The key
expires after SESSION_TIMEOUT_SECONDS without activity, which clears the
uploaded data.
"""
import json
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from app.extensions import redis_client as r
from app.config import SESSION_TIMEOUT_SECONDS
from app.pipeline.base import DealerMetrics


class DashboardSession:
    """
    Redis-backed dashboard state.

    Keys:
        dashboard:{id}   → JSON blob of session state (TTL = inactivity timeout)
    """

    def __init__(self, id: str = None):
        self.id = id or str(uuid.uuid4())
        self.created_at = datetime.now().isoformat()
        self.updated_at = self.created_at
        self.dealers: Dict[str, Dict] = {}
        self.selected_dealer: Optional[str] = None
        self.source_filename = ''
        self.uploaded_at = ''
        self.lead_count = 0
        self.row_count = 0
        self.expired = False  # set when a previous session timed out

    @property
    def key(self) -> str:
        return f'dashboard:{self.id}'

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
            'dealers': self.dealers,
            'selected_dealer': self.selected_dealer,
            'source_filename': self.source_filename,
            'uploaded_at': self.uploaded_at,
            'lead_count': self.lead_count,
            'row_count': self.row_count,
        }

    def save(self):
        """Persist session state to Redis and restart the inactivity clock."""
        self.updated_at = datetime.now().isoformat()
        r.setex(self.key, SESSION_TIMEOUT_SECONDS, json.dumps(self.to_dict()))
        return self

    def touch(self):
        """Restart the inactivity clock without rewriting the blob."""
        r.expire(self.key, SESSION_TIMEOUT_SECONDS)

    def replace_dealers(self, dealers: Dict[str, DealerMetrics], filename: str = '',
                        lead_count: int = 0, row_count: int = 0):
        """Swap in a new upload's dealer map; the old one is discarded in full."""
        self.dealers = {name: metrics.to_dict() for name, metrics in dealers.items()}
        self.selected_dealer = None
        self.source_filename = filename
        self.uploaded_at = datetime.now().isoformat()
        self.lead_count = lead_count
        self.row_count = row_count
        self.save()

    def dealer_names(self) -> List[str]:
        return sorted(self.dealers)

    def dealer(self, name: Optional[str]) -> Optional[DealerMetrics]:
        data = self.dealers.get(name) if name else None
        return DealerMetrics.from_dict(data) if data else None

    def selected(self) -> Optional[DealerMetrics]:
        return self.dealer(self.selected_dealer)

    def select(self, name: Optional[str]):
        self.selected_dealer = name if name in self.dealers else None
        self.save()

    def clear(self):
        """Drop all uploaded data; the session itself stays open."""
        self.dealers = {}
        self.selected_dealer = None
        self.source_filename = ''
        self.uploaded_at = ''
        self.lead_count = 0
        self.row_count = 0
        self.save()

    @classmethod
    def load(cls, session_id: str) -> Optional['DashboardSession']:
        """Load a session from Redis; None if it never existed or has expired."""
        if not session_id:
            return None
        data = r.get(f'dashboard:{session_id}')
        if not data:
            return None
        d = json.loads(data)
        session = cls(id=d['id'])
        session.created_at = d.get('created_at', session.created_at)
        session.updated_at = d.get('updated_at', session.updated_at)
        session.dealers = d.get('dealers', {})
        session.selected_dealer = d.get('selected_dealer')
        session.source_filename = d.get('source_filename', '')
        session.uploaded_at = d.get('uploaded_at', '')
        session.lead_count = d.get('lead_count', 0)
        session.row_count = d.get('row_count', 0)
        return session


def current_dashboard() -> DashboardSession:
    """The DashboardSession for this browser, creating one if it expired or never existed.

    Every call counts as activity and restarts the inactivity timeout.
    """
    from flask import session as cookie

    previous_id = cookie.get('dashboard_id')
    dashboard = DashboardSession.load(previous_id)
    if dashboard is None:
        dashboard = DashboardSession().save()
        dashboard.expired = bool(previous_id)
        cookie['dashboard_id'] = dashboard.id
    else:
        dashboard.touch()
    return dashboard
