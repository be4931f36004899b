"""Shared test fixtures."""
import os

os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')

import pytest
from unittest.mock import patch, MagicMock
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.database import Base


SCENARIO_HEADERS = ['Lead Type', 'Lead Date', 'Response Date', 'Sale Date', 'Lead Source']


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with schema created."""
    engine = create_engine('sqlite:///:memory:')
    import app.models.benchmark_state
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """SQLAlchemy session bound to in-memory SQLite. Rolls back after each test."""
    Session = sessionmaker(bind=db_engine)
    session = Session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(autouse=True)
def patch_get_session(db_session):
    """Route all get_session() calls to the test session.

    We disable close() so that services calling session.close()
    in their finally blocks don't invalidate the shared test session.
    """
    _real_close = db_session.close
    db_session.close = lambda: None
    with patch('app.database.get_session', return_value=db_session), \
            patch('app.services.benchmarks.get_session', return_value=db_session):
        yield db_session
    db_session.close = _real_close


@pytest.fixture(autouse=True)
def mock_redis():
    """Dict-backed Redis mock for DashboardSession. Supports get/setex/expire/delete."""
    store = {}
    mock = MagicMock()
    mock.store = store
    mock.get.side_effect = lambda key: store.get(key)
    mock.setex.side_effect = lambda key, ttl, value: store.__setitem__(key, value) or True
    mock.expire.side_effect = lambda key, ttl: key in store
    mock.delete.side_effect = lambda key: 1 if store.pop(key, None) is not None else 0
    with patch('app.models.dashboard_session.r', mock):
        yield mock


@pytest.fixture
def app():
    """Flask test app."""
    from app import create_app
    app = create_app()
    app.config['TESTING'] = True
    yield app


@pytest.fixture
def client(app):
    """Flask test client."""
    with app.test_client() as c:
        yield c


def build_lead_csv(headers, rows, dealer_name='Example Motors', line_ending='\n'):
    """Lay out a lead export the way the CRM template does.

    Row 2 carries the dealer name in column B, row 10 the headers, row 11 a
    blank spacer, lead data from row 12.
    """
    lines = ['Lead Activity Report,,,,']
    lines.append(f'Dealer Name:,"{dealer_name}"' if dealer_name is not None else 'Dealer Name:')
    lines += ['Report Period:,Last 6 Months'] + [''] * 6
    lines.append(','.join(f'"{h}"' for h in headers))
    lines.append('')
    for row in rows:
        lines.append(','.join(row))
    return line_ending.join(lines).encode('utf-8')


@pytest.fixture
def make_lead_csv():
    """Factory fixture — builds CSV bytes in the CRM template layout."""
    return build_lead_csv


@pytest.fixture
def scenario_rows():
    """10 data rows: 6 Form leads (3 sold, 2 unanswered) and 4 Phone leads."""
    return [
        ['Form', '01/05/2025', '01/05/2025', '01/20/2025', 'Website'],
        ['Form', '01/12/2025', '01/12/2025', '', 'Website'],
        ['Form', '02/03/2025', '', '02/28/2025', 'AutoTrader'],
        ['Form', '02/14/2025', '02/15/2025', '', 'Cars.com'],
        ['Form', '03/01/2025', 'N/A', '03/15/2025', 'Website'],
        ['Form', '03/22/2025', '03/22/2025', '', 'AutoTrader'],
        ['Phone', '01/07/2025', '01/07/2025', '01/30/2025', 'Walk-in'],
        ['Phone', '02/09/2025', '', '', 'Walk-in'],
        ['Phone', '03/11/2025', '03/11/2025', '', 'Referral'],
        ['Phone', '03/18/2025', '', '', 'Referral'],
    ]


@pytest.fixture
def scenario_csv(make_lead_csv, scenario_rows):
    return make_lead_csv(SCENARIO_HEADERS, scenario_rows)


@pytest.fixture
def make_lead():
    """Factory fixture — a classified Form lead row."""
    def _make(**overrides):
        row = {
            'Lead Type': 'Form',
            'Lead Date': '01/15/2025',
            'Response Date': '01/15/2025',
            'Sale Date': '',
            'Lead Source': 'Website',
            'Dealer Name': 'Example Motors',
        }
        row.update(overrides)
        return row
    return _make
