"""
Timeout and retry guards for backend calls.

The Supabase client is synchronous. Each call runs in a worker thread so
it can be bounded with asyncio.wait_for, and transport-level failures are
retried with exponential backoff. Errors raised by the backend itself
(constraint violations, RLS rejections) are never retried.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional, TypeVar

import httpx
from postgrest.exceptions import APIError
from supabase_auth.errors import AuthRetryableError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
)

from .config import settings
from .exceptions import BackendError, BackendTimeoutError, ConflictError
from .logging_config import get_logger, log_context
from .metrics import track_backend_call

logger = get_logger(__name__)

T = TypeVar("T")

RETRY_MIN_WAIT_SECONDS = 0.2
RETRY_MAX_WAIT_SECONDS = 2.0

# PostgreSQL SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"

TRANSIENT_ERRORS = (httpx.TransportError, AuthRetryableError)


async def call_backend(
    func: Callable[[], T],
    operation: str,
    timeout: Optional[float] = None,
    retries: Optional[int] = None,
) -> T:
    """
    Run a blocking backend call with a timeout and transient-error retries.

    ``operation`` is bound to the log context while the call runs, so every
    record written meanwhile (retries, failures, library warnings from the
    worker thread) carries it.

    Args:
        func: Zero-argument callable performing the call (usually a lambda
            ending in ``.execute()``)
        operation: Short name used in logs, metrics and error messages
        timeout: Seconds allowed per attempt (defaults to settings)
        retries: Extra attempts on transport failures (defaults to settings)

    Returns:
        Whatever ``func`` returns

    Raises:
        BackendTimeoutError: If an attempt exceeds the timeout
        ConflictError: If the backend reports a unique violation
        BackendError: For any other PostgREST error or network failure
    """
    timeout = settings.REQUEST_TIMEOUT if timeout is None else timeout
    retries = settings.MAX_RETRIES if retries is None else retries

    with log_context(operation=operation):
        return await _guarded_call(func, operation, timeout, retries)


async def _guarded_call(func: Callable[[], T], operation: str, timeout: float, retries: int) -> T:
    start_time = time.perf_counter()

    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(retries + 1),
            wait=wait_exponential(
                multiplier=1, min=RETRY_MIN_WAIT_SECONDS, max=RETRY_MAX_WAIT_SECONDS
            ),
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(
                        "Retrying backend call",
                        extra={"extra_fields": {"attempt": attempt.retry_state.attempt_number}},
                    )
                result = await asyncio.wait_for(asyncio.to_thread(func), timeout=timeout)

    except asyncio.TimeoutError:
        track_backend_call(operation, "timeout", time.perf_counter() - start_time)
        logger.error("Backend call timed out", extra={"extra_fields": {"timeout": timeout}})
        raise BackendTimeoutError(operation, timeout)

    except APIError as error:
        track_backend_call(operation, "error", time.perf_counter() - start_time)
        logger.error(
            "Backend rejected request",
            extra={"extra_fields": {"code": error.code, "error_message": error.message}},
        )
        if error.code == UNIQUE_VIOLATION:
            raise ConflictError(error.message or "Row already exists")
        raise BackendError(operation, error.message or "Backend request failed", error.code)

    except TRANSIENT_ERRORS as error:
        track_backend_call(operation, "network_error", time.perf_counter() - start_time)
        logger.error(
            "Cannot reach backend",
            extra={
                "extra_fields": {
                    "error_type": type(error).__name__,
                    "error_message": str(error),
                }
            },
        )
        raise BackendError(operation, "Cannot reach the booking backend", "network_error")

    track_backend_call(operation, "success", time.perf_counter() - start_time)
    return result


async def wait_for_row(
    fetch: Callable[[], Awaitable[Optional[T]]],
    attempts: int,
    interval: float,
) -> Optional[T]:
    """
    Poll until ``fetch`` returns a truthy value.

    Args:
        fetch: Coroutine function returning the row or None
        attempts: Maximum number of polls
        interval: Seconds to wait between polls

    Returns:
        The first truthy result, or None when every poll came back empty
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(interval),
        retry=retry_if_result(lambda row: not row),
        retry_error_callback=lambda retry_state: None,
    )
    return await retrying(fetch)
