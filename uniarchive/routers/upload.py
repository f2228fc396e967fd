# uniarchive/routers/upload.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, File, Form, UploadFile, status

from ..core.hierarchy import chain_ids, check_chain, resolve_chain
from ..core.validation import PDF_MIME_TYPE, validate_pdf_upload
from ..deps import AppSettings, FileStore, StatsCache, Storage
from ..models.converters import file_out
from ..schemas import UploadResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["upload"])


@router.post("/upload", status_code=status.HTTP_201_CREATED, response_model=UploadResponse)
def upload_pdf(
    storage: Storage,
    files: FileStore,
    settings: AppSettings,
    stats_cache: StatsCache,
    pdf: Optional[UploadFile] = File(default=None),
    semester: Optional[str] = Form(default=None),
    doc_type: Optional[str] = Form(default=None, alias="type"),
    subject: Optional[str] = Form(default=None),
    year: Optional[str] = Form(default=None),
):
    """
    Store an uploaded PDF and file it under semester/type/subject/year.

    Multipart fields: `pdf` (file), `semester` (S1..S5), `type` (cours, tp,
    td, devoirs, compositions, ratrapages), `subject`, `year` (YYYY or
    YYYY-YYYY). Missing type/subject/year nodes are created on the fly.
    """
    validate_pdf_upload(pdf.filename if pdf else None, pdf.content_type if pdf else None)

    # reject bad names before any bytes hit the disk
    check_chain(storage, semester, doc_type, subject, year)

    stored = files.save(pdf.file, pdf.filename, settings.max_upload_bytes)
    try:
        chain = resolve_chain(storage, semester, doc_type, subject, year)
        record = storage.create_file({
            "originalName": pdf.filename,
            "fileName": stored.file_name,
            "filePath": stored.file_path,
            "fileSize": stored.size,
            "mimeType": PDF_MIME_TYPE,
            "storageProvider": files.provider,
            **chain_ids(chain),
        })
    except Exception:
        logger.error(f"Upload of {pdf.filename!r} failed after storing bytes; removing {stored.file_name}")
        files.delete(stored.file_path)
        raise

    stats_cache.clear()
    logger.info(
        f"📤 Uploaded {pdf.filename!r} -> {chain['semester']['name']}/{chain['type']['name']}/"
        f"{chain['subject']['name']}/{chain['year']['year']}"
    )
    return {"message": "File uploaded successfully", "file": file_out(storage, record)}
