"""
Storage backends for the archive.
"""
import logging

from .base import StorageAdapter, StorageUnavailable

logger = logging.getLogger(__name__)


def build_storage_adapter(settings) -> StorageAdapter:
    """Instantiate the backend selected by STORAGE_BACKEND."""
    backend = settings.storage_backend.lower()

    if backend == "sqlite":
        from .sqlite import SqliteAdapter

        logger.info(f"🔧 Storage Backend: SQLITE ({settings.db_url.split('://')[0]})")
        return SqliteAdapter.from_url(settings.db_url)

    if backend == "json":
        from .json import JsonAdapter

        logger.info(f"🔧 Storage Backend: JSON ({settings.json_data_dir})")
        return JsonAdapter(data_dir=settings.json_data_dir)

    raise ValueError(f"Unknown STORAGE_BACKEND: {settings.storage_backend}")


__all__ = ["StorageAdapter", "StorageUnavailable", "build_storage_adapter"]
