# uniarchive/core/stats_cache.py
from __future__ import annotations

import threading
from typing import Any, Callable

from cachetools import TTLCache


class StatsCache(TTLCache):
    """
    TTL cache for the admin stats payload.

    Computing-and-storing and clearing share one lock, so a write that clears
    the cache while stats are being computed always wins.
    """

    def __init__(self, ttl: float, maxsize: int = 1):
        super().__init__(maxsize=maxsize, ttl=ttl)
        self.lock = threading.RLock()

    def get_or_compute(self, key: str, compute: Callable[[], Any]) -> Any:
        with self.lock:
            if key in self:
                return self[key]
            value = compute()
            self[key] = value
            return value

    def clear(self) -> None:
        with self.lock:
            super().clear()
