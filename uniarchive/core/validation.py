"""
Validation utilities for the archive API.
Ensures upload data integrity and provides clear error messages.
"""
import re
from typing import Optional
from fastapi import HTTPException

from .catalog import TYPE_DISPLAY_NAMES

PDF_MIME_TYPE = "application/pdf"

YEAR_PATTERN = re.compile(r"^\d{4}(-\d{4})?$")


def validate_pdf_upload(
    filename: Optional[str],
    content_type: Optional[str],
) -> None:
    """
    Validate the metadata of an uploaded file before reading its bytes.

    Rules:
    - a file part must be present
    - its MIME type must be application/pdf

    Raises:
        HTTPException: 400 if validation fails
    """
    if not filename:
        raise HTTPException(status_code=400, detail="No PDF file uploaded")

    if (content_type or "").lower() != PDF_MIME_TYPE:
        raise HTTPException(status_code=400, detail="Only PDF files are allowed")


def validate_file_size(size: int, max_bytes: int) -> None:
    """
    Validate the number of bytes received for an upload.

    Raises:
        HTTPException: 400 for an empty file, 413 above the limit
    """
    if size <= 0:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    if size > max_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File too large (max {max_bytes // (1024 * 1024)}MB)",
        )


def validate_year(year: Optional[str]) -> str:
    """
    Validate an academic year label: "2024" or "2023-2024".

    Returns:
        The stripped year label
    """
    value = (year or "").strip()
    if not YEAR_PATTERN.match(value):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid year '{value}' (expected YYYY or YYYY-YYYY)",
        )
    return value


def validate_type_name(name: Optional[str]) -> str:
    """Return the normalized type name or raise 400 if it is not in the catalog."""
    value = (name or "").strip().lower()
    if value not in TYPE_DISPLAY_NAMES:
        raise HTTPException(status_code=400, detail="Invalid type")
    return value


def require_text(value: Optional[str], field: str) -> str:
    """Strip a required text field; raise 400 when it is blank."""
    text = (value or "").strip()
    if not text:
        raise HTTPException(status_code=400, detail=f"Missing field: {field}")
    return text
