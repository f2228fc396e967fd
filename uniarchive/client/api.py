# uniarchive/client/api.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..models import AdminStats, DocumentType, FileRecord, Semester, Subject, Year
from .config import ClientConfig
from .errors import ApiError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def error_message(body: Any) -> Optional[str]:
    """
    Human-readable text carried by an error body.

    Looks at `error`, then `detail`, then `message`; FastAPI validation lists
    are flattened to their `msg` entries.
    """
    if not isinstance(body, dict):
        return None
    for key in ("error", "detail", "message"):
        value = body.get(key)
        if isinstance(value, list):
            parts = [v.get("msg", "") if isinstance(v, dict) else str(v) for v in value]
            value = "; ".join(p for p in parts if p)
        if value:
            return str(value)
    return None


class ArchiveClient:
    """
    Synchronous client for the archive REST API.

    Every call is one request against `{base_url}/api/...`; failures surface as
    `ApiError` (network, timeout, http, malformed).
    """

    def __init__(self, config: ClientConfig, http: Optional[httpx.Client] = None):
        self.config = config
        self._owns_http = http is None
        self.http = http or httpx.Client(timeout=config.timeout)

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    def __enter__(self) -> "ArchiveClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ---- transport ----------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs) -> Any:
        logger.info(f"[API] {method} {path}")
        try:
            resp = self.http.request(method, self.config.url(path), **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"[API] Timeout on {method} {path}: {e}")
            raise ApiError.timeout() from e
        except httpx.DecodingError as e:
            logger.error(f"[API] Undecodable response on {method} {path}: {e}")
            raise ApiError.malformed() from e
        except httpx.RequestError as e:
            logger.error(f"[API] Network error on {method} {path}: {e}")
            raise ApiError.network() from e

        try:
            body = resp.json()
        except ValueError:
            body = None

        if resp.is_success:
            if body is None:
                logger.error(f"[API] Non-JSON response on {method} {path}")
                raise ApiError.malformed(resp.status_code)
            return body

        message = error_message(body) or f"Erreur HTTP {resp.status_code}"
        logger.error(f"[API] Error {resp.status_code} on {method} {path}: {message}")
        raise ApiError("http", message, resp.status_code)

    def _list(self, path: str, model: Type[M]) -> List[M]:
        body = self._request("GET", path)
        if not isinstance(body, list):
            raise ApiError.malformed()
        try:
            return [model.model_validate(item) for item in body]
        except ValidationError as e:
            logger.error(f"[API] Unexpected {model.__name__} shape from {path}: {e}")
            raise ApiError.malformed() from e

    def _one(self, method: str, path: str, model: Type[M], **kwargs) -> M:
        body = self._request(method, path, **kwargs)
        try:
            return model.model_validate(body)
        except ValidationError as e:
            logger.error(f"[API] Unexpected {model.__name__} shape from {path}: {e}")
            raise ApiError.malformed() from e

    # ---- browsing -----------------------------------------------------------

    def list_semesters(self) -> List[Semester]:
        return self._list("/api/semesters", Semester)

    def list_types(self, semester_id: str) -> List[DocumentType]:
        return self._list(f"/api/semesters/{semester_id}/types", DocumentType)

    def list_subjects(self, semester_id: str, type_id: str) -> List[Subject]:
        return self._list(f"/api/semesters/{semester_id}/types/{type_id}/subjects", Subject)

    def list_years(self, semester_id: str, type_id: str, subject_id: str) -> List[Year]:
        return self._list(
            f"/api/semesters/{semester_id}/types/{type_id}/subjects/{subject_id}/years",
            Year,
        )

    def list_files(self, year_id: str) -> List[FileRecord]:
        return self._list(f"/api/years/{year_id}/files", FileRecord)

    def file_info(self, file_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/files/{file_id}/info")

    # ---- admin --------------------------------------------------------------

    def upload(
        self,
        semester: str,
        doc_type: str,
        subject: str,
        year: str,
        filename: str,
        content: bytes,
        content_type: str = "application/pdf",
    ) -> Dict[str, Any]:
        """POST /api/upload as multipart/form-data; returns `{message, file}`."""
        return self._request(
            "POST",
            "/api/upload",
            data={"semester": semester, "type": doc_type, "subject": subject, "year": year},
            files={"pdf": (filename, content, content_type)},
        )

    def update_file(self, file_id: str, **fields: Optional[str]) -> FileRecord:
        """
        PUT /api/files/{id}.

        Accepts `original_name`, `semester`, `doc_type`, `subject`, `year`;
        None values are not sent.
        """
        names = {"original_name": "originalName", "doc_type": "type"}
        payload = {names.get(k, k): v for k, v in fields.items() if v is not None}
        return self._one("PUT", f"/api/files/{file_id}", FileRecord, json=payload)

    def delete_file(self, file_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/api/files/{file_id}")

    def admin_files(self) -> List[FileRecord]:
        return self._list("/api/admin/files", FileRecord)

    def admin_stats(self) -> AdminStats:
        return self._one("GET", "/api/admin/stats", AdminStats)

    # ---- health -------------------------------------------------------------

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/api/health")

    def check_backend_health(self) -> Dict[str, Any]:
        """Connectivity probe that never raises."""
        try:
            data = self.health()
        except ApiError as e:
            return {"connected": False, "error": e.message or "Connection failed"}
        return {"connected": True, "status": 200, "data": data}
