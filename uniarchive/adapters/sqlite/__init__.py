# uniarchive/adapters/sqlite/__init__.py
from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional
from uuid import uuid4

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    create_engine,
    delete,
    event,
    func,
    insert,
    select,
    text,
    update,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, OperationalError

from ..base import StorageUnavailable
from ...core.catalog import type_order

logger = logging.getLogger(__name__)

# ---- Engine (SQLite) with WAL & pragmas -------------------------------------

def _ensure_dir(path: str):
    d = os.path.dirname(path)
    if d and not os.path.isdir(d):
        os.makedirs(d, exist_ok=True)

def make_engine(db_url: str) -> Engine:
    # Create data dir if sqlite file
    if db_url.startswith("sqlite:///"):
        file_path = db_url.replace("sqlite:///", "", 1)
        _ensure_dir(file_path)

    engine = create_engine(db_url, future=True, pool_pre_ping=True)

    # Apply pragmas per-connection
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # type: ignore
        if isinstance(dbapi_connection, sqlite3.Connection):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL;")
            cursor.execute("PRAGMA synchronous=NORMAL;")
            cursor.execute("PRAGMA foreign_keys=ON;")
            cursor.close()

    return engine

# ---- Schema via SQLAlchemy Core ---------------------------------------------

metadata = MetaData()

def _now() -> datetime:
    return datetime.now(timezone.utc)

semesters = Table(
    "semesters",
    metadata,
    Column("id", String, primary_key=True),
    Column("name", String, nullable=False, unique=True),
    Column("display_name", String, nullable=False),
    Column("order", Integer, nullable=False, default=0),
    Column("created_at", DateTime(timezone=True), nullable=False, default=_now),
)

types = Table(
    "types",
    metadata,
    Column("id", String, primary_key=True),
    Column("semester_id", String, ForeignKey("semesters.id", ondelete="CASCADE"), nullable=False),
    Column("name", String, nullable=False),
    Column("display_name", String, nullable=False),
    Column("order", Integer, nullable=False, default=0),
    Column("created_at", DateTime(timezone=True), nullable=False, default=_now),
    UniqueConstraint("semester_id", "name", name="uq_types_semester_name"),
)

subjects = Table(
    "subjects",
    metadata,
    Column("id", String, primary_key=True),
    Column("semester_id", String, ForeignKey("semesters.id", ondelete="CASCADE"), nullable=False),
    Column("type_id", String, ForeignKey("types.id", ondelete="CASCADE"), nullable=False),
    Column("name", String, nullable=False),
    Column("display_name", String, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, default=_now),
    UniqueConstraint("semester_id", "type_id", "name", name="uq_subjects_parent_name"),
)

years = Table(
    "years",
    metadata,
    Column("id", String, primary_key=True),
    Column("semester_id", String, ForeignKey("semesters.id", ondelete="CASCADE"), nullable=False),
    Column("type_id", String, ForeignKey("types.id", ondelete="CASCADE"), nullable=False),
    Column("subject_id", String, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False),
    Column("year", String, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, default=_now),
    UniqueConstraint("semester_id", "type_id", "subject_id", "year", name="uq_years_parent_year"),
)

files = Table(
    "files",
    metadata,
    Column("id", String, primary_key=True),
    Column("original_name", Text, nullable=False),
    Column("file_name", String, nullable=False),
    Column("file_path", Text, nullable=False),
    Column("file_size", Integer, nullable=False),
    Column("mime_type", String, nullable=False, default="application/pdf"),
    Column("storage_provider", String, nullable=False, default="local"),
    Column("semester_id", String, ForeignKey("semesters.id"), nullable=False),
    Column("type_id", String, ForeignKey("types.id"), nullable=False),
    Column("subject_id", String, ForeignKey("subjects.id"), nullable=False),
    Column("year_id", String, ForeignKey("years.id"), nullable=False),
    Column("uploaded_at", DateTime(timezone=True), nullable=False, default=_now),
    Column("updated_at", DateTime(timezone=True), nullable=False, default=_now),
)

Index("idx_types_semester", types.c.semester_id)
Index("idx_subjects_parent", subjects.c.semester_id, subjects.c.type_id)
Index("idx_years_subject", years.c.subject_id)
Index("idx_files_year", files.c.year_id)

# wire key -> files column
FILE_COLUMNS = {
    "originalName": "original_name",
    "fileName": "file_name",
    "filePath": "file_path",
    "fileSize": "file_size",
    "mimeType": "mime_type",
    "storageProvider": "storage_provider",
    "semester": "semester_id",
    "type": "type_id",
    "subject": "subject_id",
    "year": "year_id",
}

# ---- Row converters ----------------------------------------------------------

def _iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()

def _semester_out(r) -> Dict[str, Any]:
    return {
        "_id": r["id"],
        "name": r["name"],
        "displayName": r["display_name"],
        "order": r["order"],
        "createdAt": _iso(r["created_at"]),
    }

def _type_out(r) -> Dict[str, Any]:
    return {
        "_id": r["id"],
        "name": r["name"],
        "displayName": r["display_name"],
        "semester": r["semester_id"],
        "order": r["order"],
        "createdAt": _iso(r["created_at"]),
    }

def _subject_out(r) -> Dict[str, Any]:
    return {
        "_id": r["id"],
        "name": r["name"],
        "displayName": r["display_name"],
        "semester": r["semester_id"],
        "type": r["type_id"],
        "createdAt": _iso(r["created_at"]),
    }

def _year_out(r) -> Dict[str, Any]:
    return {
        "_id": r["id"],
        "year": r["year"],
        "semester": r["semester_id"],
        "type": r["type_id"],
        "subject": r["subject_id"],
        "createdAt": _iso(r["created_at"]),
    }

def _file_out(r) -> Dict[str, Any]:
    out = {wire: r[col] for wire, col in FILE_COLUMNS.items()}
    out["_id"] = r["id"]
    out["uploadedAt"] = _iso(r["uploaded_at"])
    out["updatedAt"] = _iso(r["updated_at"])
    return out

# ---- Adapter implementation --------------------------------------------------

@dataclass(frozen=True)
class SqliteAdapter:
    engine: Engine

    @classmethod
    def from_url(cls, db_url: str = "sqlite:///data/archive.db") -> "SqliteAdapter":
        eng = make_engine(db_url)
        metadata.create_all(eng)
        return cls(engine=eng)

    @contextmanager
    def _begin(self) -> Iterator[Connection]:
        try:
            with self.engine.begin() as conn:
                yield conn
        except OperationalError as e:
            logger.error(f"SQLite unavailable: {e}")
            raise StorageUnavailable(str(e)) from e

    def _one(self, table: Table, **where) -> Optional[Dict[str, Any]]:
        q = select(table)
        for col, value in where.items():
            q = q.where(table.c[col] == value)
        with self._begin() as conn:
            row = conn.execute(q).mappings().first()
        return dict(row) if row else None

    def _get_or_create(self, table: Table, values: Dict[str, Any], **where) -> Dict[str, Any]:
        row = self._one(table, **where)
        if row:
            return row
        try:
            with self._begin() as conn:
                conn.execute(insert(table).values(id=str(uuid4()), created_at=_now(), **where, **values))
        except IntegrityError:
            # concurrent insert of the same key; fall through to the re-read
            logger.info(f"{table.name}: {where} created concurrently")
        return self._one(table, **where)

    def ping(self) -> None:
        with self._begin() as conn:
            conn.execute(text("SELECT 1"))

    # Semesters
    def list_semesters(self) -> List[Dict[str, Any]]:
        with self._begin() as conn:
            rows = conn.execute(select(semesters).order_by(semesters.c.order.asc())).mappings().all()
        return [_semester_out(r) for r in rows]

    def get_semester(self, semester_id: str) -> Optional[Dict[str, Any]]:
        row = self._one(semesters, id=semester_id)
        return _semester_out(row) if row else None

    def get_semester_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        row = self._one(semesters, name=name)
        return _semester_out(row) if row else None

    def create_semesters(self, rows: List[Dict[str, Any]]) -> int:
        created = 0
        with self._begin() as conn:
            existing = set(conn.execute(select(semesters.c.name)).scalars().all())
            for s in rows:
                if s["name"] in existing:
                    continue
                conn.execute(
                    insert(semesters).values(
                        id=str(uuid4()),
                        name=s["name"],
                        display_name=s["displayName"],
                        order=int(s.get("order", 0)),
                        created_at=_now(),
                    )
                )
                existing.add(s["name"])
                created += 1
        return created

    # Types
    def list_types(self, semester_id: str) -> List[Dict[str, Any]]:
        q = (
            select(types)
            .where(types.c.semester_id == semester_id)
            .order_by(types.c.order.asc(), types.c.name.asc())
        )
        with self._begin() as conn:
            rows = conn.execute(q).mappings().all()
        return [_type_out(r) for r in rows]

    def get_type(self, type_id: str) -> Optional[Dict[str, Any]]:
        row = self._one(types, id=type_id)
        return _type_out(row) if row else None

    def get_or_create_type(self, semester_id: str, name: str, display_name: str) -> Dict[str, Any]:
        row = self._get_or_create(
            types,
            {"display_name": display_name, "order": type_order(name)},
            semester_id=semester_id,
            name=name,
        )
        return _type_out(row)

    # Subjects
    def list_subjects(self, semester_id: str, type_id: str) -> List[Dict[str, Any]]:
        q = (
            select(subjects)
            .where(subjects.c.semester_id == semester_id, subjects.c.type_id == type_id)
            .order_by(func.lower(subjects.c.name).asc())
        )
        with self._begin() as conn:
            rows = conn.execute(q).mappings().all()
        return [_subject_out(r) for r in rows]

    def get_subject(self, subject_id: str) -> Optional[Dict[str, Any]]:
        row = self._one(subjects, id=subject_id)
        return _subject_out(row) if row else None

    def get_or_create_subject(self, semester_id: str, type_id: str, name: str) -> Dict[str, Any]:
        row = self._get_or_create(
            subjects,
            {"display_name": name},
            semester_id=semester_id,
            type_id=type_id,
            name=name,
        )
        return _subject_out(row)

    # Years
    def list_years(self, semester_id: str, type_id: str, subject_id: str) -> List[Dict[str, Any]]:
        q = (
            select(years)
            .where(
                years.c.semester_id == semester_id,
                years.c.type_id == type_id,
                years.c.subject_id == subject_id,
            )
            .order_by(years.c.year.desc())
        )
        with self._begin() as conn:
            rows = conn.execute(q).mappings().all()
        return [_year_out(r) for r in rows]

    def get_year(self, year_id: str) -> Optional[Dict[str, Any]]:
        row = self._one(years, id=year_id)
        return _year_out(row) if row else None

    def get_or_create_year(self, semester_id: str, type_id: str, subject_id: str, year: str) -> Dict[str, Any]:
        row = self._get_or_create(
            years,
            {},
            semester_id=semester_id,
            type_id=type_id,
            subject_id=subject_id,
            year=year,
        )
        return _year_out(row)

    # Files
    def list_files(self, year_id: Optional[str] = None) -> List[Dict[str, Any]]:
        q = select(files).order_by(files.c.uploaded_at.desc(), text("files.rowid DESC"))
        if year_id is not None:
            q = q.where(files.c.year_id == year_id)
        with self._begin() as conn:
            rows = conn.execute(q).mappings().all()
        return [_file_out(r) for r in rows]

    def get_file(self, file_id: str) -> Optional[Dict[str, Any]]:
        row = self._one(files, id=file_id)
        return _file_out(row) if row else None

    def create_file(self, data: Dict[str, Any]) -> Dict[str, Any]:
        file_id = str(uuid4())
        now = _now()
        values = {FILE_COLUMNS[k]: v for k, v in data.items() if k in FILE_COLUMNS}
        with self._begin() as conn:
            conn.execute(insert(files).values(id=file_id, uploaded_at=now, updated_at=now, **values))
        return self.get_file(file_id)

    def update_file(self, file_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        values = {FILE_COLUMNS[k]: v for k, v in updates.items() if k in FILE_COLUMNS}
        with self._begin() as conn:
            res = conn.execute(
                update(files).where(files.c.id == file_id).values(updated_at=_now(), **values)
            )
            if res.rowcount == 0:
                return None
        return self.get_file(file_id)

    def delete_file(self, file_id: str) -> bool:
        with self._begin() as conn:
            res = conn.execute(delete(files).where(files.c.id == file_id))
        return res.rowcount > 0

    # Stats
    def counts(self) -> Dict[str, int]:
        out: Dict[str, int] = {}
        with self._begin() as conn:
            for table in (semesters, types, subjects, years, files):
                out[table.name] = conn.execute(select(func.count()).select_from(table)).scalar_one()
        return out
