"""
Get-or-create chain shared by upload and re-classification.
"""
from typing import Any, Dict, Optional, Tuple

from fastapi import HTTPException

from .catalog import TYPE_DISPLAY_NAMES
from .validation import require_text, validate_type_name, validate_year


def check_chain(
    storage,
    semester: Optional[str],
    doc_type: Optional[str],
    subject: Optional[str],
    year: Optional[str],
) -> Tuple[Dict[str, Any], str, str, str]:
    """
    Validate hierarchy names without creating anything.

    Returns:
        (semester record, type name, subject name, year label)

    Raises:
        HTTPException: 400 for an unknown semester/type, a blank subject or a
            malformed year
    """
    semester_name = require_text(semester, "semester")
    type_name = validate_type_name(doc_type)
    subject_name = require_text(subject, "subject")
    year_label = validate_year(year)

    semester_doc = storage.get_semester_by_name(semester_name)
    if not semester_doc:
        raise HTTPException(status_code=400, detail="Invalid semester")
    return semester_doc, type_name, subject_name, year_label


def resolve_chain(
    storage,
    semester: Optional[str],
    doc_type: Optional[str],
    subject: Optional[str],
    year: Optional[str],
) -> Dict[str, Any]:
    """
    Resolve (semester, type, subject, year) names to stored records.

    The semester must already exist; type, subject and year are created under
    their parent when missing, and reused otherwise.

    Returns:
        {"semester": {...}, "type": {...}, "subject": {...}, "year": {...}}
    """
    semester_doc, type_name, subject_name, year_label = check_chain(
        storage, semester, doc_type, subject, year
    )

    type_doc = storage.get_or_create_type(
        semester_doc["_id"], type_name, TYPE_DISPLAY_NAMES[type_name]
    )
    subject_doc = storage.get_or_create_subject(
        semester_doc["_id"], type_doc["_id"], subject_name
    )
    year_doc = storage.get_or_create_year(
        semester_doc["_id"], type_doc["_id"], subject_doc["_id"], year_label
    )
    return {
        "semester": semester_doc,
        "type": type_doc,
        "subject": subject_doc,
        "year": year_doc,
    }


def chain_ids(chain: Dict[str, Any]) -> Dict[str, str]:
    """Reference ids to store on a file record."""
    return {key: doc["_id"] for key, doc in chain.items()}
