"""Retry logic using tenacity library.

Provides exponential backoff with jitter for shared-link requests.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

import httpx
from tenacity import (
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)
from tenacity import (
    retry as _retry,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)

# Transient transport failures only; HTTP status errors are final
NETWORK_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.ConnectError,
    httpx.ReadError,
    httpx.RemoteProtocolError,
)


def retry_with_backoff(
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    jitter: float = 1.0,
    exceptions: tuple[type[BaseException], ...] = NETWORK_EXCEPTIONS,
    logger_instance: logging.Logger | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Retry decorator with exponential backoff and jitter.

    Args:
        max_attempts: Total attempts including the first try
        base_delay: Initial delay in seconds
        max_delay: Maximum delay in seconds
        jitter: Maximum random jitter added to each delay
        exceptions: Exception types that trigger another attempt
        logger_instance: Logger for retry warnings (uses module logger if None)

    Returns:
        Decorator function

    Example:
        head = retry_with_backoff(max_attempts=3)(client.head)
        response = head(url)
    """
    return _retry(
        reraise=True,
        stop=stop_after_attempt(max(max_attempts, 1)),
        wait=wait_exponential_jitter(initial=base_delay, max=max_delay, jitter=jitter),
        retry=retry_if_exception_type(exceptions),
        before_sleep=before_sleep_log(logger_instance or logger, logging.WARNING),
    )
