# uniarchive/routers/admin.py
from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Dict, List

from fastapi import APIRouter

from ..deps import StatsCache, Storage
from ..models import AdminStats
from ..models.converters import file_out

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])

STATS_KEY = "stats"


@router.get("/files")
def list_all_files(storage: Storage) -> List[Dict[str, Any]]:
    """Every file in the archive, populated, newest upload first."""
    cache: dict = {}
    return [file_out(storage, f, cache) for f in storage.list_files()]


def compute_stats(storage) -> Dict[str, Any]:
    files = storage.list_files()
    counts = storage.counts()

    semester_names = {s["_id"]: s["name"] for s in storage.list_semesters()}
    type_names: Dict[str, str] = {}
    for type_id in {f["type"] for f in files}:
        t = storage.get_type(type_id)
        if t:
            type_names[type_id] = t["name"]

    by_semester = Counter(semester_names.get(f["semester"], "?") for f in files)
    by_type = Counter(type_names.get(f["type"], "?") for f in files)

    stats = AdminStats(
        total_files=counts["files"],
        total_size=sum(int(f.get("fileSize") or 0) for f in files),
        total_semesters=counts["semesters"],
        total_types=counts["types"],
        total_subjects=counts["subjects"],
        total_years=counts["years"],
        files_by_semester=dict(by_semester),
        files_by_type=dict(by_type),
        last_upload_at=files[0]["uploadedAt"] if files else None,
    )
    return stats.model_dump(mode="json", by_alias=True)


@router.get("/stats")
def admin_stats(storage: Storage, stats_cache: StatsCache) -> Dict[str, Any]:
    """Aggregate counters, cached for STATS_CACHE_TTL seconds between writes."""
    return stats_cache.get_or_compute(STATS_KEY, lambda: compute_stats(storage))
