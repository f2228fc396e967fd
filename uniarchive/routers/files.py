# uniarchive/routers/files.py
from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterator, Optional, Tuple
from urllib.parse import quote

from fastapi import APIRouter, Header, HTTPException, status
from fastapi.responses import FileResponse, StreamingResponse

from ..core.devices import is_ios_device, is_mobile_device, is_safari
from ..core.hierarchy import chain_ids, resolve_chain
from ..core.validation import PDF_MIME_TYPE
from ..deps import FileStore, StatsCache, Storage
from ..models.converters import file_out, file_urls, populate
from ..schemas import FileUpdate, MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/files", tags=["files"])

STREAM_CHUNK = 64 * 1024

_RANGE_RE = re.compile(r"^bytes=(\d*)-(\d*)$")

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
    "X-Content-Type-Options": "nosniff",
    "Accept-Ranges": "bytes",
}


def _disposition(kind: str, original_name: str) -> str:
    return f'{kind}; filename="{quote(original_name or "document.pdf", safe="!~*()")}"'


def _load(storage, file_id: str) -> Dict[str, Any]:
    record = storage.get_file(file_id)
    if not record:
        raise HTTPException(status_code=404, detail="File not found")
    return record


def _load_on_disk(storage, files, file_id: str) -> Dict[str, Any]:
    record = _load(storage, file_id)
    if not files.exists(record.get("filePath")):
        logger.warning(f"File {file_id} has no bytes at {record.get('filePath')}")
        raise HTTPException(status_code=404, detail="File not found on disk")
    return record


def parse_range(header: str, size: int) -> Tuple[int, int]:
    """
    Parse a single `bytes=start-end` range against a file of `size` bytes.

    Supports open ends (`bytes=100-`) and suffixes (`bytes=-500`).

    Returns:
        Inclusive (start, end) offsets

    Raises:
        HTTPException: 416 when the range is malformed or unsatisfiable
    """
    m = _RANGE_RE.match(header.strip())
    if not m or (not m.group(1) and not m.group(2)):
        raise _unsatisfiable(size)

    first, last = m.group(1), m.group(2)
    if not first:
        suffix = int(last)
        if suffix == 0:
            raise _unsatisfiable(size)
        start, end = max(size - suffix, 0), size - 1
    else:
        start = int(first)
        end = int(last) if last else size - 1
        end = min(end, size - 1)

    if start >= size or start > end:
        raise _unsatisfiable(size)
    return start, end


def _unsatisfiable(size: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_416_REQUESTED_RANGE_NOT_SATISFIABLE,
        detail="Requested range not satisfiable",
        headers={"Content-Range": f"bytes */{size}"},
    )


def _iter_file(path, start: int, length: int) -> Iterator[bytes]:
    with open(path, "rb") as f:
        f.seek(start)
        remaining = length
        while remaining > 0:
            chunk = f.read(min(STREAM_CHUNK, remaining))
            if not chunk:
                break
            remaining -= len(chunk)
            yield chunk


@router.get("/{file_id}/view")
def view_file(
    file_id: str,
    storage: Storage,
    files: FileStore,
    user_agent: Optional[str] = Header(default=None),
):
    """
    Serve the PDF for in-browser display.

    Mobile agents get no-cache headers; iOS Safari gets an attachment
    disposition.
    """
    record = _load_on_disk(storage, files, file_id)
    ua = user_agent or ""
    mime = record.get("mimeType") or PDF_MIME_TYPE
    name = record.get("originalName", "")

    headers = {"Content-Disposition": _disposition("inline", name)}
    if mime == PDF_MIME_TYPE and is_mobile_device(ua):
        headers.update(NO_CACHE_HEADERS)
        if is_ios_device(ua) and is_safari(ua):
            headers["Content-Disposition"] = _disposition("attachment", name)

    return FileResponse(files.path_for(record["filePath"]), media_type=mime, headers=headers)


@router.get("/{file_id}/download")
def download_file(
    file_id: str,
    storage: Storage,
    files: FileStore,
    user_agent: Optional[str] = Header(default=None),
):
    record = _load_on_disk(storage, files, file_id)
    name = record.get("originalName", "")

    headers = {
        "Content-Disposition": _disposition("attachment", name),
        "Cache-Control": "no-cache",
        "Accept-Ranges": "bytes",
    }
    if is_mobile_device(user_agent or ""):
        headers["X-Suggested-Filename"] = quote(name or "document.pdf", safe="!~*()")
        headers["Access-Control-Expose-Headers"] = "Content-Disposition, X-Suggested-Filename"

    return FileResponse(
        files.path_for(record["filePath"]),
        media_type=record.get("mimeType") or "application/octet-stream",
        headers=headers,
    )


@router.get("/{file_id}/stream")
def stream_file(
    file_id: str,
    storage: Storage,
    files: FileStore,
    range_header: Optional[str] = Header(default=None, alias="Range"),
):
    """Stream the PDF, honouring a single HTTP Range (206) when provided."""
    record = _load_on_disk(storage, files, file_id)
    path = files.path_for(record["filePath"])
    size = path.stat().st_size
    mime = record.get("mimeType") or PDF_MIME_TYPE

    if range_header:
        start, end = parse_range(range_header, size)
        length = end - start + 1
        return StreamingResponse(
            _iter_file(path, start, length),
            status_code=status.HTTP_206_PARTIAL_CONTENT,
            media_type=mime,
            headers={
                "Content-Range": f"bytes {start}-{end}/{size}",
                "Accept-Ranges": "bytes",
                "Content-Length": str(length),
                "Cache-Control": "no-cache",
            },
        )

    return StreamingResponse(
        _iter_file(path, 0, size),
        media_type=mime,
        headers={
            "Content-Length": str(size),
            "Accept-Ranges": "bytes",
            "Cache-Control": "no-cache",
        },
    )


@router.get("/{file_id}/info")
def file_info(file_id: str, storage: Storage, files: FileStore) -> Dict[str, Any]:
    record = _load(storage, file_id)
    out = populate(storage, record, ("semester", "type", "subject", "year"))
    out["exists"] = files.exists(record.get("filePath"))
    out.update(file_urls(record["_id"]))
    return out


@router.put("/{file_id}")
def update_file(
    file_id: str,
    payload: FileUpdate,
    storage: Storage,
    stats_cache: StatsCache,
) -> Dict[str, Any]:
    """
    Rename and/or re-classify a file.

    Hierarchy fields are names; the ones left out keep the file's current
    placement, and the merged chain goes through the same get-or-create
    resolution as an upload.
    """
    record = _load(storage, file_id)
    updates: Dict[str, Any] = {}

    if payload.originalName is not None:
        updates["originalName"] = payload.originalName

    changes = payload.hierarchy_changes()
    if changes:
        current = populate(storage, record, ("semester", "type", "subject", "year"))

        def _name(field: str, key: str = "name") -> Optional[str]:
            ref = current.get(field)
            return ref.get(key) if isinstance(ref, dict) else None

        chain = resolve_chain(
            storage,
            changes.get("semester", _name("semester")),
            changes.get("type", _name("type")),
            changes.get("subject", _name("subject")),
            changes.get("year", _name("year", "year")),
        )
        updates.update(chain_ids(chain))

    if not updates:
        raise HTTPException(status_code=400, detail="No changes provided")

    updated = storage.update_file(file_id, updates)
    if updated is None:
        raise HTTPException(status_code=404, detail="File not found")
    stats_cache.clear()

    logger.info(f"✏️ Updated file {file_id}: {sorted(updates)}")
    return file_out(storage, updated)


@router.delete("/{file_id}", response_model=MessageResponse)
def delete_file(
    file_id: str,
    storage: Storage,
    files: FileStore,
    stats_cache: StatsCache,
):
    record = _load(storage, file_id)
    if not storage.delete_file(file_id):
        raise HTTPException(status_code=404, detail="File not found")
    stats_cache.clear()

    if not files.delete(record.get("filePath")):
        logger.warning(f"File {file_id} removed from the archive without its stored bytes")
    logger.info(f"🗑️ Deleted file {file_id} ({record.get('originalName')})")
    return {"message": "File deleted successfully"}
