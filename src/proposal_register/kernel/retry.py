"""
Retry with exponential backoff for SQLite lock contention.

Several processes (CLI invocations, the health server) may open the same
register file; SQLite answers concurrent writers with "database is locked"
or "database is busy". Only those are retried. Schema errors, domain
rejections and version conflicts surface immediately.
"""

import sqlite3
from collections.abc import Callable
from typing import TypeVar

from tenacity import RetryCallState, retry, retry_if_exception, stop_after_attempt, wait_exponential

from proposal_register.kernel.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_LOCK_MESSAGES = ("database is locked", "database is busy", "database table is locked")


def is_lock_contention(exc: BaseException) -> bool:
    """True for the OperationalErrors SQLite raises while another writer holds the lock"""
    if not isinstance(exc, sqlite3.OperationalError):
        return False
    message = str(exc).lower()
    return any(m in message for m in _LOCK_MESSAGES)


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "SQLite lock detected, retrying",
        function=getattr(retry_state.fn, "__name__", None),
        attempt=retry_state.attempt_number,
        exception=str(exc) if exc else None,
    )


def retry_on_sqlite_lock(
    max_attempts: int = 3,
    min_wait_ms: int = 50,
    max_wait_ms: int = 1000,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Retry decorator for SQLite lock contention.

    Args:
        max_attempts: Maximum number of attempts (default: 3)
        min_wait_ms: Minimum wait time in milliseconds (default: 50)
        max_wait_ms: Maximum wait time in milliseconds (default: 1000)

    Example:
        @retry_on_sqlite_lock()
        def count_events(self) -> int:
            ...
    """
    return retry(
        retry=retry_if_exception(is_lock_contention),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait_ms / 1000.0, max=max_wait_ms / 1000.0),
        before_sleep=_log_retry,
        reraise=True,
    )
