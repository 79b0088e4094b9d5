"""Await-condition primitive used for every polling loop."""

import asyncio
import time
from collections.abc import Awaitable, Callable

SleepFn = Callable[[float], Awaitable[None]]
ClockFn = Callable[[], float]


async def await_condition(
    predicate: Callable[[], bool],
    *,
    timeout: float,
    interval: float,
    sleep_fn: SleepFn | None = None,
    clock: ClockFn | None = None,
) -> bool:
    """Poll ``predicate`` every ``interval`` seconds until it holds or ``timeout`` elapses.

    The predicate is always checked at least once, and once more after the
    deadline is reached, so a condition that becomes true during the last
    sleep is not missed.

    Args:
        predicate: Zero-argument check, must not block
        timeout: Upper bound in seconds
        interval: Delay between checks in seconds
        sleep_fn: Injectable sleep function (default: asyncio.sleep)
        clock: Injectable monotonic clock (default: time.monotonic)

    Returns:
        True if the predicate held before the deadline, False otherwise
    """
    sleep = sleep_fn or asyncio.sleep
    now = clock or time.monotonic
    deadline = now() + timeout

    while True:
        if predicate():
            return True
        if now() >= deadline:
            return False
        await sleep(interval)
