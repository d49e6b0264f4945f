"""
VitaBalance API - Retry Helpers.

Capped exponential backoff for transient store and provider failures.
Callers decide which exceptions are transient through ``should_retry``.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delay(attempt: int, base_delay: float, max_delay: float = 30.0) -> float:
    """Delay before retry number ``attempt`` (0-based): base * 2^attempt, capped."""
    return min(base_delay * (2 ** attempt), max_delay)


def retry_sync(
    func: Callable[[], T],
    *,
    attempts: int,
    base_delay: float,
    should_retry: Callable[[Exception], bool],
    operation: str = "operation",
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call ``func`` until it succeeds or the attempt budget is spent.

    Args:
        func: Zero-argument callable.
        attempts: Maximum number of calls (>= 1).
        base_delay: Delay before the first retry, in seconds.
        should_retry: Predicate selecting transient failures.
        operation: Name used in log lines.
        sleep: Sleep function (injectable for tests).

    Returns:
        Whatever ``func`` returns.

    Raises:
        The last exception raised by ``func``.
    """
    for attempt in range(attempts):
        try:
            return func()
        except Exception as e:
            if attempt >= attempts - 1 or not should_retry(e):
                raise
            delay = backoff_delay(attempt, base_delay)
            logger.warning(f"{operation} failed: {e} (attempt {attempt + 1}), retrying in {delay:.1f}s")
            sleep(delay)
    raise RuntimeError("retry_sync called with attempts < 1")


async def retry_async(
    func: Callable[[], Awaitable[T]],
    *,
    attempts: int,
    base_delay: float,
    should_retry: Callable[[Exception], bool],
    operation: str = "operation",
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
) -> T:
    """Async counterpart of :func:`retry_sync`."""
    sleep = sleep or asyncio.sleep
    for attempt in range(attempts):
        try:
            return await func()
        except Exception as e:
            if attempt >= attempts - 1 or not should_retry(e):
                raise
            delay = backoff_delay(attempt, base_delay)
            logger.warning(f"{operation} failed: {e} (attempt {attempt + 1}), retrying in {delay:.1f}s")
            await sleep(delay)
    raise RuntimeError("retry_async called with attempts < 1")
