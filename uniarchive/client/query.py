# uniarchive/client/query.py
from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Generic, Optional, TypeVar

from .errors import ApiError, QueryCancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancelToken:
    """Cancellation flag tied to the lifetime of one page."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to `seconds`; True if cancelled meanwhile."""
        return self._event.wait(seconds)


class QueryStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"
    CANCELLED = "cancelled"


class ResourceQuery(Generic[T]):
    """
    Loading / data / error state of one page-level fetch.

    `fetch` performs the request and returns parsed records; `retry_policy`
    (optional) re-runs it on transient failures. Once `cancel()` is called no
    further attempt is made and late results are discarded.
    """

    def __init__(
        self,
        fetch: Callable[[], T],
        fallback_message: str = "",
        retry_policy=None,
    ):
        self.fetch = fetch
        self.fallback_message = fallback_message
        self.retry_policy = retry_policy
        self.token = CancelToken()

        self.status = QueryStatus.IDLE
        self.data: Optional[T] = None
        self.error: Optional[ApiError] = None
        self.attempt = 0

    @property
    def loading(self) -> bool:
        return self.status is QueryStatus.LOADING

    @property
    def error_message(self) -> Optional[str]:
        if self.error is None:
            return None
        return self.error.message or self.fallback_message

    def _execute(self) -> T:
        if self.retry_policy is None:
            self.attempt = 1
            return self.fetch()

        return_value = None
        for attempt in self.retry_policy.retrying(self.token):
            with attempt:
                self.attempt = attempt.retry_state.attempt_number
                if self.token.cancelled:
                    raise QueryCancelled()
                return_value = self.fetch()
        return return_value

    def run(self) -> "ResourceQuery[T]":
        if self.token.cancelled:
            self.status = QueryStatus.CANCELLED
            return self

        self.status = QueryStatus.LOADING
        self.error = None
        try:
            data = self._execute()
        except QueryCancelled:
            logger.info("Query cancelled before completion")
            self.status = QueryStatus.CANCELLED
            return self
        except ApiError as e:
            if self.token.cancelled:
                self.status = QueryStatus.CANCELLED
                return self
            logger.error(f"Query failed after {self.attempt} attempt(s): {e.message}")
            self.error = e
            self.data = None
            self.status = QueryStatus.ERROR
            return self

        if self.token.cancelled:
            self.status = QueryStatus.CANCELLED
            return self
        self.data = data
        self.status = QueryStatus.SUCCESS
        return self

    def retry(self) -> "ResourceQuery[T]":
        """Manual retry: starts over from attempt 1."""
        self.attempt = 0
        return self.run()

    def cancel(self) -> None:
        self.token.cancel()
        if self.status in (QueryStatus.IDLE, QueryStatus.LOADING):
            self.status = QueryStatus.CANCELLED
