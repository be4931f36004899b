"""
Pipeline Manager — one upload through the dealer-metrics pipeline.

    VALIDATE → EXTRACT → CLASSIFY → AGGREGATE → store in DashboardSession

Runs synchronously inside the upload request. Any stage failure aborts the
whole upload and leaves the session's previous dealer data untouched.
"""
import logging
import os
from dataclasses import dataclass, asdict
from typing import Dict, List

from app.config import ALLOWED_EXTENSIONS, MAX_UPLOAD_BYTES
from app.errors import InvalidUpload, NoMatchingLeads
from app.pipeline.aggregate import aggregate
from app.pipeline.classify import classify
from app.pipeline.extract import extract, file_extension
from app.services.sanitize import is_safe_filename

logger = logging.getLogger('pipeline.manager')


@dataclass
class UploadSummary:
    filename: str
    total_rows: int
    form_leads: int
    dealers: List[str]

    def to_dict(self) -> Dict:
        data = asdict(self)
        data['dealer_count'] = len(self.dealers)
        return data


def validate_upload(filename: str, size: int):
    """Reject files the pipeline should never see."""
    if not filename:
        raise InvalidUpload("No file selected.")
    ext = file_extension(filename)
    stem = os.path.basename(filename)[:-len(ext)] if ext else os.path.basename(filename)
    if not is_safe_filename(stem):
        raise InvalidUpload(
            'Invalid filename. Please avoid special characters like <, >, :, ", |, ?, *'
        )
    if ext not in ALLOWED_EXTENSIONS:
        raise InvalidUpload("Invalid file type. Please upload a CSV or Excel file.")
    if size > MAX_UPLOAD_BYTES:
        raise InvalidUpload(
            f"File too large. Maximum size is {MAX_UPLOAD_BYTES // (1024 * 1024)}MB."
        )


def process_upload(filename: str, content: bytes, dashboard) -> UploadSummary:
    """
    Run a lead export through every stage and store the dealer map.

    Args:
        filename:  Original upload name — picks the reader.
        content:   Raw file bytes.
        dashboard: DashboardSession receiving the new dealer map.

    Raises:
        InvalidUpload, MalformedInput, NoMatchingLeads
    """
    validate_upload(filename, len(content))

    rows = extract(filename, content)
    leads = classify(rows)
    if not leads:
        raise NoMatchingLeads(
            f"No form leads found in {len(rows)} data rows. "
            "Check that the file has a 'Lead Type' column with 'Form' leads."
        )

    dealers = aggregate(leads)
    dashboard.replace_dealers(dealers, filename=filename,
                              lead_count=len(leads), row_count=len(rows))

    logger.info("Processed upload: %d rows, %d form leads, %d dealer(s)",
                len(rows), len(leads), len(dealers))
    return UploadSummary(
        filename=filename,
        total_rows=len(rows),
        form_leads=len(leads),
        dealers=sorted(dealers),
    )
