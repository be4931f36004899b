"""
Centralized configuration — env vars, lead-file layout, benchmark defaults.
"""
import os


# ── Flask ─────────────────────────────────────────────────────────────────────
SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-change-me')

# ── Redis ─────────────────────────────────────────────────────────────────────
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')

# ── Database ──────────────────────────────────────────────────────────────────
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///local.db')

# ── Session ───────────────────────────────────────────────────────────────────
# Dealer data is dropped after this many seconds without activity.
SESSION_TIMEOUT_SECONDS = int(os.getenv('SESSION_TIMEOUT_SECONDS', 30 * 60))

# ── Uploads ───────────────────────────────────────────────────────────────────
MAX_UPLOAD_BYTES = int(os.getenv('MAX_UPLOAD_BYTES', 10 * 1024 * 1024))
ALLOWED_EXTENSIONS = ('.csv', '.xlsx', '.xls')

# ── Lead export layout (v1 of the CRM lead-activity template) ────────────────
# 0-based row/column positions. Change these together if the template moves.
DEALER_NAME_ROW_INDEX = 1
DEALER_NAME_COLUMN_INDEX = 1
HEADER_ROW_INDEX = 9
DATA_START_ROW_INDEX = 11
FIELD_SEPARATOR = ','
UNKNOWN_DEALER = 'Unknown Dealer'

# ── Column aliases — first match wins ────────────────────────────────────────
DEALER_COLUMN = 'Dealer Name'
LEAD_TYPE_ALIASES = ['Lead Type', 'LeadType', 'lead type', 'LEAD TYPE', 'Type']
DATE_ALIASES = ['Lead Date', 'Date', 'Created Date']
SOURCE_ALIASES = ['Lead Source', 'Source', 'Lead Source of Data']
SALE_DATE_COLUMN = 'Sale Date'
RESPONSE_DATE_COLUMN = 'Response Date'

FORM_LEAD_TOKEN = 'Form'
ALL_DEALERS = 'All Dealers'
UNKNOWN_SOURCE = 'Unknown'
DEFAULT_DATA_MONTHS = 6

# ── Benchmarks ────────────────────────────────────────────────────────────────
BENCHMARK_STATE_KEY = 'benchmarkData'
DEFAULT_BENCHMARK_NAME = 'default'
DEFAULT_BENCHMARK_LABEL = 'Default (Q1-Q2 2025)'

DEFAULT_BENCHMARKS = {
    'totalLeads': 27047,
    'conversionRate': 16.12,
    'responseRate': 54.9,
    'noResponseRate': 45.1,
    'fifteenMinResponse': 31.7,
    'avgResponseTime': 5.5,
    'medianResponseTime': 12,
}

BENCHMARK_INT_FIELDS = ('totalLeads', 'medianResponseTime')

# ── ROI ───────────────────────────────────────────────────────────────────────
DEFAULT_AVG_DEAL_VALUE = 4255

ROI_REPORT_DEFAULTS = {
    'monthly_leads': 873,
    'current_conversion': 10.91,
    'target_conversion': 12.91,
    'avg_deal_value': DEFAULT_AVG_DEAL_VALUE,
}

# ── Reports ───────────────────────────────────────────────────────────────────
# (minimum conversion rate, label), checked top-down.
PERFORMANCE_TIERS = [
    (20, 'Elite Performer'),
    (16, 'Strong Performer'),
    (12, 'Average Performer'),
]
DEFAULT_PERFORMANCE_TIER = 'Challenge Dealer'
NO_RESPONSE_ALERT_THRESHOLD = 30

# Dealer exports cover a six-month window; annualize by doubling.
ANNUALIZATION_FACTOR = 2
