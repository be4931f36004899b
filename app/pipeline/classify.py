"""
Lead classification — keep only web-form leads.

The lead-type column is found by alias (first match in the first row wins).
A file without any recognized lead-type column yields no leads; the caller
decides whether that is an error.
"""
import logging
from typing import List, Optional

from app.config import FORM_LEAD_TOKEN, LEAD_TYPE_ALIASES
from app.pipeline.base import RawRow

logger = logging.getLogger('pipeline.classify')


def find_lead_type_column(rows: List[RawRow]) -> Optional[str]:
    if not rows:
        return None
    first = rows[0]
    for alias in LEAD_TYPE_ALIASES:
        if alias in first:
            return alias
    return None


def is_form_lead(value: str) -> bool:
    """'Form' in any casing, or any label containing 'Form' (e.g. 'Web Form')."""
    if not value:
        return False
    return value.strip().lower() == FORM_LEAD_TOKEN.lower() or FORM_LEAD_TOKEN in value


def classify(rows: List[RawRow]) -> List[RawRow]:
    column = find_lead_type_column(rows)
    if column is None:
        logger.warning("No lead type column found in %d rows", len(rows))
        return []

    leads = [row for row in rows if is_form_lead(row.get(column, ''))]
    logger.info("Classified %d form leads out of %d rows (column '%s')",
                len(leads), len(rows), column)
    return leads
