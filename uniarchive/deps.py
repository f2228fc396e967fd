# uniarchive/deps.py
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from .core.file_store import LocalFileStore
from .core.stats_cache import StatsCache as StatsCacheStore
from .settings import Settings


# ---- DI helpers (used by routers/*) ----
def get_storage_adapter(request: Request):
    return request.app.state.storage_adapter


def get_file_store(request: Request) -> LocalFileStore:
    return request.app.state.file_store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_stats_cache(request: Request) -> StatsCacheStore:
    return request.app.state.stats_cache


# ---- DI aliases (no default value allowed) ----
Storage = Annotated[object, Depends(get_storage_adapter)]
FileStore = Annotated[LocalFileStore, Depends(get_file_store)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
StatsCache = Annotated[StatsCacheStore, Depends(get_stats_cache)]
