"""Deadline guard for awaited operations.

Script invocations and file I/O are awaited through ``run_with_deadline``
so a stuck plugin or a hung filesystem call cannot block a request or a
pipeline pass indefinitely.

Example:
    result = await run_with_deadline(
        registry.execute("default", payload), 5.0, label="script default"
    )
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DeadlineExceeded(TimeoutError):
    """Raised when an awaited operation does not finish in time."""

    def __init__(self, label: str, timeout: float):
        super().__init__(f"{label} exceeded deadline of {timeout:g}s")
        self.label = label
        self.timeout = timeout


async def run_with_deadline(
    awaitable: Awaitable[T],
    timeout: Optional[float],
    label: str = "operation",
) -> T:
    """Await ``awaitable``, cancelling it after ``timeout`` seconds.

    Args:
        awaitable: Coroutine or future to await
        timeout: Seconds to wait; None or <= 0 disables the deadline
        label: Human-readable name used in the error message

    Returns:
        The awaited result

    Raises:
        DeadlineExceeded: If the deadline passes first
    """
    if timeout is None or timeout <= 0:
        return await awaitable

    scope = asyncio.timeout(timeout)
    try:
        async with scope:
            return await awaitable
    except TimeoutError as e:
        # A TimeoutError raised by the awaited code propagates unchanged
        if not scope.expired():
            raise
        logger.warning(f"{label} timed out after {timeout:g}s")
        raise DeadlineExceeded(label, timeout) from e


async def run_in_thread_with_deadline(
    func: Callable[..., T],
    *args,
    timeout: Optional[float] = None,
    label: str = "operation",
) -> T:
    """Run a blocking callable in a worker thread under a deadline.

    The worker thread itself cannot be interrupted; on timeout the caller
    stops waiting and the thread finishes in the background.
    """
    return await run_with_deadline(asyncio.to_thread(func, *args), timeout, label)
