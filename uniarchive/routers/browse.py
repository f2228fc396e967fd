# uniarchive/routers/browse.py
from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException

from ..deps import Storage
from ..models.converters import file_out, populate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["browse"])


def _require(record, what: str):
    if record is None:
        raise HTTPException(status_code=404, detail=f"{what} not found")
    return record


@router.get("/semesters")
def list_semesters(storage: Storage) -> List[Dict[str, Any]]:
    """All semesters, ordered S1..S5."""
    return storage.list_semesters()


@router.get("/semesters/{semester_id}/types")
def list_types(semester_id: str, storage: Storage) -> List[Dict[str, Any]]:
    _require(storage.get_semester(semester_id), "Semester")
    cache: dict = {}
    return [populate(storage, t, ("semester",), cache) for t in storage.list_types(semester_id)]


@router.get("/semesters/{semester_id}/types/{type_id}/subjects")
def list_subjects(semester_id: str, type_id: str, storage: Storage) -> List[Dict[str, Any]]:
    _require(storage.get_semester(semester_id), "Semester")
    _require(storage.get_type(type_id), "Type")
    cache: dict = {}
    return [
        populate(storage, s, ("semester", "type"), cache)
        for s in storage.list_subjects(semester_id, type_id)
    ]


@router.get("/semesters/{semester_id}/types/{type_id}/subjects/{subject_id}/years")
def list_years(
    semester_id: str,
    type_id: str,
    subject_id: str,
    storage: Storage,
) -> List[Dict[str, Any]]:
    """Years of a subject, most recent first, with the full parent chain populated."""
    _require(storage.get_semester(semester_id), "Semester")
    _require(storage.get_type(type_id), "Type")
    _require(storage.get_subject(subject_id), "Subject")
    cache: dict = {}
    return [
        populate(storage, y, ("semester", "type", "subject"), cache)
        for y in storage.list_years(semester_id, type_id, subject_id)
    ]


@router.get("/years/{year_id}/files")
def list_year_files(year_id: str, storage: Storage) -> List[Dict[str, Any]]:
    _require(storage.get_year(year_id), "Year")
    cache: dict = {}
    return [file_out(storage, f, cache) for f in storage.list_files(year_id)]
