"""Retry with exponential backoff for transient database failures."""
import time
from typing import Callable, Iterable, Optional, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError

from app.core.config import settings
from app.core.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

RETRYABLE_PATTERNS = (
    "network",
    "timeout",
    "timed out",
    "connection reset",
    "connection refused",
    "could not connect",
    "server closed the connection",
)


def is_retryable_error(exc: BaseException, patterns: Iterable[str] = RETRYABLE_PATTERNS) -> bool:
    """Check whether an exception looks like a transient connectivity failure."""
    if isinstance(exc, OperationalError):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    if isinstance(exc, (ConnectionError, TimeoutError)):
        return True

    message = str(exc).lower()
    return any(pattern in message for pattern in patterns)


def with_retry(
    fn: Callable[[], T],
    max_retries: Optional[int] = None,
    retry_delay: Optional[float] = None,
    on_retry: Optional[Callable[[BaseException], None]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call fn, retrying transient failures with exponential backoff.

    Only use this on idempotent reads. Writes are not retried: a retried
    vote submission could land twice around a partial failure.

    Args:
        fn: Zero-argument callable to run
        max_retries: Extra attempts after the first (defaults to settings)
        retry_delay: Base delay in seconds, doubled per attempt (defaults to settings)
        on_retry: Called with the failure before each retry, e.g. to roll back a session
        sleep: Sleep function, injectable for tests

    Returns:
        The value returned by fn

    Raises:
        The last exception when it is not retryable or attempts are exhausted
    """
    if max_retries is None:
        max_retries = settings.RETRY_MAX_ATTEMPTS
    if retry_delay is None:
        retry_delay = settings.RETRY_DELAY_SECONDS

    attempt = 0
    while True:
        try:
            return fn()
        except Exception as exc:
            if attempt >= max_retries or not is_retryable_error(exc):
                raise

            delay = retry_delay * (2 ** attempt)
            logger.warning(
                "retrying_after_transient_error",
                attempt=attempt + 1,
                max_retries=max_retries,
                delay_seconds=delay,
                error=str(exc),
            )
            if on_retry is not None:
                on_retry(exc)
            sleep(delay)
            attempt += 1
