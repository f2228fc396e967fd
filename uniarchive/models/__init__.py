from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Record(BaseModel):
    """
    Base for every archive record.

    Wire format is camelCase with a Mongo-style `_id`; Python attributes are
    snake_case (`original_name`, `file_size`, ...).
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: str = Field(alias="_id")


class Semester(Record):
    """One academic term (S1..S5)."""
    name: str = ""
    display_name: str = ""
    order: int = 0


class DocumentType(Record):
    """A document category (cours, tp, td, ...) scoped to a semester."""
    name: str
    display_name: str = ""
    semester: Optional[Union[Semester, str]] = None
    order: int = 0


class Subject(Record):
    """A course scoped to (semester, type)."""
    name: str
    display_name: str = ""
    semester: Optional[Union[Semester, str]] = None
    doc_type: Optional[Union[DocumentType, str]] = Field(default=None, alias="type")


class Year(Record):
    """An academic year ("2024" or "2023-2024") scoped to a subject."""
    year: str
    semester: Optional[Union[Semester, str]] = None
    doc_type: Optional[Union[DocumentType, str]] = Field(default=None, alias="type")
    subject: Optional[Union[Subject, str]] = None


class FileRecord(Record):
    """A leaf PDF document."""
    original_name: str = ""
    file_name: Optional[str] = None
    file_path: Optional[str] = None
    view_url: Optional[str] = None
    download_url: Optional[str] = None
    file_size: int = 0
    mime_type: str = "application/pdf"
    storage_provider: str = "local"
    uploaded_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    semester: Optional[Union[Semester, str]] = None
    doc_type: Optional[Union[DocumentType, str]] = Field(default=None, alias="type")
    subject: Optional[Union[Subject, str]] = None
    year: Optional[Union[Year, str]] = None


class AdminStats(BaseModel):
    """Aggregate counters returned by GET /api/admin/stats."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_files: int = 0
    total_size: int = 0
    total_semesters: int = 0
    total_types: int = 0
    total_subjects: int = 0
    total_years: int = 0
    files_by_semester: dict[str, int] = Field(default_factory=dict)
    files_by_type: dict[str, int] = Field(default_factory=dict)
    last_upload_at: Optional[datetime] = None


def ref_id(ref: Union[Record, str, None]) -> Optional[str]:
    """Id of a populated or bare reference."""
    if ref is None:
        return None
    if isinstance(ref, Record):
        return ref.id
    return ref


def ref_name(ref: Union[Record, str, None]) -> str:
    """Machine name (`S1`, `cours`, subject name) of a populated reference."""
    if isinstance(ref, Year):
        return ref.year
    return getattr(ref, "name", "") or ""


def ref_label(ref: Union[Record, str, None]) -> str:
    """Human label of a populated reference, falling back to its name."""
    if isinstance(ref, Year):
        return ref.year
    return getattr(ref, "display_name", "") or ref_name(ref)


__all__ = [
    "Record",
    "Semester",
    "DocumentType",
    "Subject",
    "Year",
    "FileRecord",
    "AdminStats",
    "ref_id",
    "ref_name",
    "ref_label",
]
