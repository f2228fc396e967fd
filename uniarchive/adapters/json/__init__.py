"""
JSON file storage adapter for the archive.
Simple file-based storage for quick demos and testing.
Not production-ready (no proper locking, not suitable for concurrent access).
"""
import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Dict, Any, Optional

from ..base import StorageUnavailable
from ...core.catalog import type_order

logger = logging.getLogger(__name__)

COLLECTIONS = ("semesters", "types", "subjects", "years", "files")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class JsonAdapter:
    """
    JSON file-based storage adapter.
    Stores each collection in its own JSON file under the data directory.
    Uses atomic file operations for basic consistency.
    """

    def __init__(self, data_dir: str = "data"):
        """
        Initialize the JSON adapter.

        Args:
            data_dir: Directory to store JSON files
        """
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

        self.paths = {name: self.data_dir / f"{name}.json" for name in COLLECTIONS}

        # Initialize files if they don't exist
        for path in self.paths.values():
            if not path.exists():
                self._write_file(path, [])

    def _read_file(self, filepath: Path) -> List[Dict[str, Any]]:
        """Read and parse a JSON file."""
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return []
        except json.JSONDecodeError as e:
            logger.error(f"Corrupted collection file {filepath}: {e}")
            raise StorageUnavailable(f"Corrupted collection file {filepath.name}") from e
        except OSError as e:
            raise StorageUnavailable(str(e)) from e

    def _write_file(self, filepath: Path, data: List[Dict[str, Any]]) -> None:
        """Write data to a JSON file atomically."""
        tmp_file = filepath.with_suffix(".tmp")
        try:
            with open(tmp_file, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False, default=str)
            tmp_file.replace(filepath)
        except OSError as e:
            raise StorageUnavailable(str(e)) from e

    def _rows(self, collection: str) -> List[Dict[str, Any]]:
        return self._read_file(self.paths[collection])

    def _find(self, collection: str, **where) -> Optional[Dict[str, Any]]:
        for row in self._rows(collection):
            if all(row.get(k) == v for k, v in where.items()):
                return row
        return None

    def _filter(self, collection: str, **where) -> List[Dict[str, Any]]:
        return [
            row for row in self._rows(collection)
            if all(row.get(k) == v for k, v in where.items())
        ]

    def _get_or_create(self, collection: str, values: Dict[str, Any], **where) -> Dict[str, Any]:
        with self._lock:
            rows = self._rows(collection)
            for row in rows:
                if all(row.get(k) == v for k, v in where.items()):
                    return row
            row = {"_id": str(uuid.uuid4()), **where, **values, "createdAt": _now()}
            rows.append(row)
            self._write_file(self.paths[collection], rows)
            return row

    def ping(self) -> None:
        if not self.data_dir.is_dir():
            raise StorageUnavailable(f"Data directory missing: {self.data_dir}")

    # ========== Semesters ==========

    def list_semesters(self) -> List[Dict[str, Any]]:
        return sorted(self._rows("semesters"), key=lambda s: s.get("order", 0))

    def get_semester(self, semester_id: str) -> Optional[Dict[str, Any]]:
        return self._find("semesters", _id=semester_id)

    def get_semester_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        return self._find("semesters", name=name)

    def create_semesters(self, rows: List[Dict[str, Any]]) -> int:
        with self._lock:
            semesters = self._rows("semesters")
            existing = {s["name"] for s in semesters}
            created = 0
            for s in rows:
                if s["name"] in existing:
                    continue
                semesters.append({
                    "_id": str(uuid.uuid4()),
                    "name": s["name"],
                    "displayName": s["displayName"],
                    "order": int(s.get("order", 0)),
                    "createdAt": _now(),
                })
                existing.add(s["name"])
                created += 1
            if created:
                self._write_file(self.paths["semesters"], semesters)
            return created

    # ========== Types ==========

    def list_types(self, semester_id: str) -> List[Dict[str, Any]]:
        rows = self._filter("types", semester=semester_id)
        return sorted(rows, key=lambda t: (t.get("order", 0), t["name"]))

    def get_type(self, type_id: str) -> Optional[Dict[str, Any]]:
        return self._find("types", _id=type_id)

    def get_or_create_type(self, semester_id: str, name: str, display_name: str) -> Dict[str, Any]:
        return self._get_or_create(
            "types",
            {"displayName": display_name, "order": type_order(name)},
            semester=semester_id,
            name=name,
        )

    # ========== Subjects ==========

    def list_subjects(self, semester_id: str, type_id: str) -> List[Dict[str, Any]]:
        rows = self._filter("subjects", semester=semester_id, type=type_id)
        return sorted(rows, key=lambda s: s["name"].lower())

    def get_subject(self, subject_id: str) -> Optional[Dict[str, Any]]:
        return self._find("subjects", _id=subject_id)

    def get_or_create_subject(self, semester_id: str, type_id: str, name: str) -> Dict[str, Any]:
        return self._get_or_create(
            "subjects",
            {"displayName": name},
            semester=semester_id,
            type=type_id,
            name=name,
        )

    # ========== Years ==========

    def list_years(self, semester_id: str, type_id: str, subject_id: str) -> List[Dict[str, Any]]:
        rows = self._filter("years", semester=semester_id, type=type_id, subject=subject_id)
        return sorted(rows, key=lambda y: y["year"], reverse=True)

    def get_year(self, year_id: str) -> Optional[Dict[str, Any]]:
        return self._find("years", _id=year_id)

    def get_or_create_year(
        self,
        semester_id: str,
        type_id: str,
        subject_id: str,
        year: str,
    ) -> Dict[str, Any]:
        return self._get_or_create(
            "years",
            {},
            semester=semester_id,
            type=type_id,
            subject=subject_id,
            year=year,
        )

    # ========== Files ==========

    def list_files(self, year_id: Optional[str] = None) -> List[Dict[str, Any]]:
        rows = self._rows("files")
        if year_id is not None:
            rows = [f for f in rows if f.get("year") == year_id]
        # identical timestamps: most recently inserted first
        rows = list(reversed(rows))
        return sorted(rows, key=lambda f: f.get("uploadedAt") or "", reverse=True)

    def get_file(self, file_id: str) -> Optional[Dict[str, Any]]:
        return self._find("files", _id=file_id)

    def create_file(self, data: Dict[str, Any]) -> Dict[str, Any]:
        now = _now()
        row = {
            "_id": str(uuid.uuid4()),
            "originalName": data["originalName"],
            "fileName": data["fileName"],
            "filePath": data["filePath"],
            "fileSize": int(data["fileSize"]),
            "mimeType": data.get("mimeType", "application/pdf"),
            "storageProvider": data.get("storageProvider", "local"),
            "semester": data["semester"],
            "type": data["type"],
            "subject": data["subject"],
            "year": data["year"],
            "uploadedAt": now,
            "updatedAt": now,
        }
        with self._lock:
            rows = self._rows("files")
            rows.append(row)
            self._write_file(self.paths["files"], rows)
        return row

    def update_file(self, file_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with self._lock:
            rows = self._rows("files")
            for row in rows:
                if row["_id"] == file_id:
                    row.update({k: v for k, v in updates.items() if k not in ("_id", "uploadedAt")})
                    row["updatedAt"] = _now()
                    self._write_file(self.paths["files"], rows)
                    return row
        return None

    def delete_file(self, file_id: str) -> bool:
        with self._lock:
            rows = self._rows("files")
            remaining = [f for f in rows if f["_id"] != file_id]
            if len(remaining) == len(rows):
                return False
            self._write_file(self.paths["files"], remaining)
        return True

    # ========== Stats ==========

    def counts(self) -> Dict[str, int]:
        return {name: len(self._rows(name)) for name in COLLECTIONS}
