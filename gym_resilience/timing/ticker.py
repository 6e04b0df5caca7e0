"""Display refresh loop for clocks."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from gym_resilience.timing.clock import ClockMode, LifecycleClock


async def run_display_ticker(
    clock: LifecycleClock,
    on_tick: Callable[[float], None],
    interval_seconds: float = 1.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> None:
    """Push ``clock.current_value()`` to ``on_tick`` every interval.

    The tick rate only affects display smoothness; every tick re-reads the
    clock, so missed ticks while suspended never skew the value. Countdowns
    stop after reporting zero; elapsed clocks run until the task is cancelled.
    """
    interval = max(0.01, interval_seconds)
    while True:
        value = clock.current_value()
        on_tick(value)
        if clock.mode is ClockMode.COUNTDOWN and clock.is_started and value <= 0.0:
            return
        await sleep(interval)
