"""
Fixed-interval scheduler.

Runs one cycle at a time and sleeps for whatever is left of the interval, so
cycles start ``interval`` apart as long as a cycle is shorter than the
interval.  An overrunning cycle is followed immediately by the next one; the
lost time is not made up later.
"""
from __future__ import annotations

import asyncio
import enum
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from .constants import SECONDS_PER_MINUTE
from .errors import SpeedwatchError

logger = logging.getLogger(__name__)


class ErrorPolicy(enum.Enum):
    """What the scheduler does when a cycle raises a ``SpeedwatchError``."""

    STOP = "stop"           # propagate, the process exits
    CONTINUE = "continue"   # log, wait for the next slot, keep going


async def run_forever(
    cycle: Callable[[], Awaitable[Any]],
    interval_minutes: int,
    *,
    policy: ErrorPolicy = ErrorPolicy.STOP,
    max_cycles: Optional[int] = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> None:
    """Invoke *cycle* every *interval_minutes* until it fails or is cancelled.

    Args:
        cycle: Coroutine function performing one measure-and-publish cycle.
        interval_minutes: Whole minutes between cycle starts, at least 1.
        policy: ``STOP`` re-raises the first failure without sleeping or
            running another cycle; ``CONTINUE`` logs it and carries on.
        max_cycles: Return after this many cycles (``None`` runs forever).
            No sleep follows the last cycle.
        clock: Monotonic time source in seconds.
        sleep: Awaitable sleep used between cycles.
    """
    if isinstance(interval_minutes, bool) or not isinstance(interval_minutes, int):
        raise ValueError(f"interval must be a whole number of minutes, got {interval_minutes!r}")
    if interval_minutes < 1:
        raise ValueError(f"interval must be at least 1 minute, got {interval_minutes}")

    interval = float(interval_minutes * SECONDS_PER_MINUTE)
    completed = 0

    while max_cycles is None or completed < max_cycles:
        start = clock()

        try:
            await cycle()
        except SpeedwatchError:
            if policy is ErrorPolicy.STOP:
                raise
            logger.exception("Cycle failed, retrying at the next interval")

        completed += 1
        if max_cycles is not None and completed >= max_cycles:
            break

        elapsed = clock() - start
        if elapsed < interval:
            await sleep(interval - elapsed)
        else:
            logger.debug("Cycle took %.1fs, longer than the %.0fs interval", elapsed, interval)
