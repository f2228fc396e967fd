from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Tuple

# Reference field -> adapter getter used to populate it
_GETTERS = {
    "semester": "get_semester",
    "type": "get_type",
    "subject": "get_subject",
    "year": "get_year",
}


def file_urls(file_id: str) -> Dict[str, str]:
    """API-relative endpoints for a stored file."""
    return {
        "viewUrl": f"/api/files/{file_id}/view",
        "downloadUrl": f"/api/files/{file_id}/download",
        "streamUrl": f"/api/files/{file_id}/stream",
    }


def populate(
    storage,
    row: Dict[str, Any],
    fields: Iterable[str],
    cache: Optional[Dict[Tuple[str, str], Any]] = None,
) -> Dict[str, Any]:
    """
    Replace reference ids in `row` with the referenced records.

    Unknown ids are left as bare strings. `cache` lets a caller share lookups
    across all rows of one response.
    """
    cache = {} if cache is None else cache
    out = dict(row)
    for field in fields:
        ref = out.get(field)
        if not isinstance(ref, str) or not ref:
            continue
        key = (field, ref)
        if key not in cache:
            cache[key] = getattr(storage, _GETTERS[field])(ref)
        if cache[key] is not None:
            out[field] = cache[key]
    return out


def file_out(storage, row: Dict[str, Any], cache=None) -> Dict[str, Any]:
    """Public shape of a file record: populated references plus endpoint URLs."""
    out = populate(storage, row, ("semester", "type", "subject", "year"), cache)
    out.update(file_urls(row["_id"]))
    return out
