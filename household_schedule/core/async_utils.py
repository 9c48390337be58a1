"""Async helpers for bounded fan-out reads.

Usage Example:
    ```python
    from household_schedule.core.async_utils import gather_with_timeout

    results = await gather_with_timeout(
        read_care_plans(), read_todos(), timeout=15.0, return_exceptions=True
    )
    ```
"""

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AsyncTimeoutError(Exception):
    """Raised when async operation exceeds timeout."""


async def run_with_timeout(aw: Awaitable[T], timeout: Optional[float]) -> T:
    """Await ``aw`` with a timeout; the awaitable is cancelled when it expires.

    Raises:
        AsyncTimeoutError: If the timeout expires
    """
    try:
        return await asyncio.wait_for(aw, timeout=timeout)
    except TimeoutError as e:
        logger.warning("Operation timed out after %.1fs", timeout or 0.0)
        raise AsyncTimeoutError(f"Operation exceeded timeout of {timeout}s") from e


async def gather_with_timeout(
    *aws: Awaitable[Any],
    timeout: Optional[float] = None,
    return_exceptions: bool = False,
) -> list[Any]:
    """Gather awaitables under one shared timeout.

    On timeout, or when the caller is cancelled, every awaitable still
    running is cancelled before this returns.

    Args:
        *aws: Coroutines or tasks to gather
        timeout: Timeout in seconds for the whole group (None for no limit)
        return_exceptions: Return exceptions as results instead of raising

    Raises:
        AsyncTimeoutError: If the timeout expires
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    gathered = asyncio.gather(*tasks, return_exceptions=return_exceptions)
    try:
        return await run_with_timeout(gathered, timeout)
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
