"""
Bounded, cancellable waiting primitives.

Every detection and selection wait in Fare Funnel goes through these
helpers so that budget accounting and external cancellation are explicit:

- Clock: monotonic time source + sleeper (tests swap in a fake)
- Deadline: remaining/elapsed bookkeeping for one budget
- CancelToken: external abort signal (run timeout, Ctrl+C)
- bounded_wait(): await something with a hard bound, racing the token
- poll_until(): poll an async predicate until it holds or the budget ends
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Tuple

from fare_funnel.exceptions import Cancelled

logger = logging.getLogger(__name__)


class Clock:
    """Monotonic clock backed by asyncio.sleep."""

    def now(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(max(0.0, seconds))


class CancelToken:
    """
    External abort signal shared by one session's waits.

    Once cancelled it stays cancelled; create a new token per run.

    Example:
        >>> token = CancelToken()
        >>> loop.call_later(120, token.cancel, "run timeout")
    """

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self, operation: str) -> None:
        if self.is_cancelled:
            raise Cancelled(f"{operation} aborted: {self.reason}", operation=operation)


@dataclass
class Deadline:
    """Budget bookkeeping measured on a Clock."""
    budget_s: float
    clock: Clock = field(default_factory=Clock)
    started: float = field(init=False)

    def __post_init__(self):
        self.started = self.clock.now()

    @property
    def elapsed(self) -> float:
        return self.clock.now() - self.started

    @property
    def remaining(self) -> float:
        return max(0.0, self.budget_s - self.elapsed)

    @property
    def expired(self) -> bool:
        return self.remaining <= 0


async def bounded_wait(
    awaitable: Awaitable[Any],
    timeout_s: Optional[float],
    cancel: Optional[CancelToken] = None,
    operation: str = "wait",
) -> Tuple[bool, Any]:
    """
    Await with a hard real-time bound, racing an optional cancel token.

    Args:
        awaitable: Coroutine or future to wait on
        timeout_s: Hard bound in seconds (None = unbounded)
        cancel: Token whose firing aborts the wait
        operation: Name used in the Cancelled error

    Returns:
        (True, result) if the awaitable finished in time,
        (False, None) if the bound expired first.

    Raises:
        Cancelled: if the token fired first (or was already set)
        Any exception raised by the awaitable itself
    """
    task = asyncio.ensure_future(awaitable)
    if cancel is not None and cancel.is_cancelled:
        task.cancel()
        cancel.raise_if_cancelled(operation)

    waiters = {task}
    cancel_task = None
    if cancel is not None:
        cancel_task = asyncio.ensure_future(cancel.wait())
        waiters.add(cancel_task)

    try:
        done, _ = await asyncio.wait(waiters, timeout=timeout_s, return_when=asyncio.FIRST_COMPLETED)
    finally:
        if cancel_task is not None and not cancel_task.done():
            cancel_task.cancel()
        if not task.done():
            task.cancel()

    if task in done:
        return True, task.result()

    if cancel is not None:
        cancel.raise_if_cancelled(operation)
    logger.debug(f"{operation}: gave up after {timeout_s}s")
    return False, None


async def cancellable_sleep(
    seconds: float,
    clock: Clock,
    cancel: Optional[CancelToken] = None,
    operation: str = "sleep",
) -> None:
    """Sleep on the clock, waking early with Cancelled if the token fires."""
    await bounded_wait(clock.sleep(seconds), None, cancel, operation)


async def poll_until(
    predicate: Callable[[], Awaitable[bool]],
    timeout_s: float,
    clock: Clock,
    cancel: Optional[CancelToken] = None,
    interval_s: float = 0.25,
    operation: str = "poll",
) -> bool:
    """
    Poll an async predicate until it returns True or the budget runs out.

    The predicate is always evaluated at least once, even with a zero
    budget. Exceptions from the predicate propagate.

    Returns:
        True if the predicate held within the budget
    """
    deadline = Deadline(timeout_s, clock)
    while True:
        if cancel is not None:
            cancel.raise_if_cancelled(operation)
        if await predicate():
            return True
        if deadline.expired:
            return False
        await cancellable_sleep(min(interval_s, deadline.remaining), clock, cancel, operation)
