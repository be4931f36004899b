"""
Sanitizing helpers for uploaded, untrusted content.

Cells are cleaned on ingestion; anything shown in a report is escaped again
on the way out.
"""
import re

from markupsafe import Markup

_TAG_RE = re.compile(r'<[^>]*>')
_JS_SCHEME_RE = re.compile(r'javascript:', re.IGNORECASE)
_EVENT_HANDLER_RE = re.compile(r'on\w+\s*=', re.IGNORECASE)
_SAFE_FILENAME_RE = re.compile(r"^[\w\-. ()_']+$")

_HTML_ENTITIES = [
    ('&', '&amp;'),
    ('<', '&lt;'),
    ('>', '&gt;'),
    ('"', '&quot;'),
    ("'", '&#039;'),
]


def sanitize_cell(value) -> str:
    """Strip tags, script URLs and inline event handlers from a cell value."""
    if not isinstance(value, str):
        return ''
    value = _TAG_RE.sub('', value)
    value = _JS_SCHEME_RE.sub('', value)
    value = _EVENT_HANDLER_RE.sub('', value)
    return value.strip()


def escape_html(value):
    """Entity-escape a string for HTML output.

    Returns Markup so Jinja's autoescape leaves the result alone. Non-strings
    (counts, rates already formatted as numbers) pass through unchanged.
    """
    if not isinstance(value, str):
        return value
    for char, entity in _HTML_ENTITIES:
        value = value.replace(char, entity)
    return Markup(value)


def is_safe_filename(stem: str) -> bool:
    return bool(_SAFE_FILENAME_RE.match(stem or ''))
