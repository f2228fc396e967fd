# uniarchive/client/retry.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from tenacity import Retrying, RetryCallState, retry_if_exception, stop_after_attempt, wait_incrementing

from .errors import QueryCancelled, is_transient

logger = logging.getLogger(__name__)


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    wait = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.warning(
        f"Attempt {retry_state.attempt_number} failed ({exc!r}); retrying in {wait:.0f}s..."
    )


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded linear backoff for transient API failures.

    Attempt n waits `start + (n - 1) * increment` seconds before attempt n+1
    (2 s then 4 s by default); non-transient errors surface immediately.
    """
    max_attempts: int = 3
    start: float = 2.0
    increment: float = 2.0
    # Replaces the real wait (tests); cancellation is still checked afterwards
    sleep: Optional[Callable[[float], None]] = None

    def retrying(self, token) -> Retrying:
        """tenacity controller whose waits are interrupted by `token.cancel()`."""

        def _sleep(seconds: float) -> None:
            if self.sleep is not None:
                self.sleep(seconds)
            elif token.wait(seconds):
                raise QueryCancelled()
            if token.cancelled:
                raise QueryCancelled()

        return Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_incrementing(start=self.start, increment=self.increment),
            retry=retry_if_exception(is_transient),
            sleep=_sleep,
            before_sleep=_log_retry,
            reraise=True,
        )


HOME_RETRY = RetryPolicy()
