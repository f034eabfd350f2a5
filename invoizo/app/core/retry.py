"""Retry wrapper for persistence operations.

Transient infrastructure failures are retried with exponential backoff; domain
errors raised inside the operation propagate untouched on the first attempt.
Anything else that escapes is surfaced as ``DatabaseConnectionError``.
"""

import logging
import time
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import DisconnectionError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from invoizo.app.core.exceptions import DatabaseConnectionError, InvoizoError
from invoizo.app.core.settings import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

BACKOFF_MULTIPLIER = 2
TRANSIENT_EXCEPTIONS = (
    OperationalError,
    DisconnectionError,
    PoolTimeoutError,
    ConnectionError,
    TimeoutError,
)
TRANSIENT_MESSAGE_MARKERS = (
    "timeout",
    "connection",
    "network",
    "temporarily unavailable",
    "502",
    "503",
    "504",
)


def is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, InvoizoError):
        return False
    if isinstance(exc, TRANSIENT_EXCEPTIONS):
        return True
    message = str(exc).lower()
    if not message:
        return False
    if any(marker in message for marker in TRANSIENT_MESSAGE_MARKERS):
        return True
    return "database" in message and ("connection" in message or "unavailable" in message)


def execute_with_retry(
    operation: Callable[[], T],
    operation_name: str,
    *,
    max_attempts: Optional[int] = None,
    initial_delay: Optional[float] = None,
    on_failure: Optional[Callable[[], None]] = None,
) -> T:
    """Run ``operation`` until it succeeds, fails permanently, or the attempts run out.

    ``on_failure`` runs after every failed attempt (typically ``session.rollback``),
    so the next attempt starts from a clean session. The operation must perform a
    single effect per call, e.g. one commit.
    """
    settings = get_settings()
    attempts = max_attempts if max_attempts is not None else settings.RETRY_MAX_ATTEMPTS
    delay = initial_delay if initial_delay is not None else settings.RETRY_INITIAL_DELAY_SECONDS

    attempt = 1
    while True:
        try:
            result = operation()
            if attempt > 1:
                logger.info(f"{operation_name} succeeded on attempt {attempt}")
            return result
        except Exception as exc:
            if on_failure is not None:
                on_failure()
            if isinstance(exc, InvoizoError):
                raise

            retryable = is_retryable(exc)
            if not retryable:
                logger.error(f"{operation_name} failed with non-retryable error: {exc}")
                raise DatabaseConnectionError(f"{operation_name} failed: {exc}", retryable=False) from exc
            if attempt >= attempts:
                logger.error(f"{operation_name} failed after {attempt} attempts: {exc}")
                raise DatabaseConnectionError(
                    f"{operation_name} failed after {attempt} attempts: {exc}", retryable=True
                ) from exc

            logger.warning(
                f"{operation_name} failed on attempt {attempt}/{attempts}, retrying in {delay}s: {exc}"
            )
            time.sleep(delay)
            delay *= BACKOFF_MULTIPLIER
            attempt += 1
