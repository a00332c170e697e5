from __future__ import annotations

import asyncio
import math
import time
from dataclasses import dataclass
from typing import AsyncIterator, Iterator


@dataclass(frozen=True, slots=True)
class DispatchTick:
    seq: int
    scheduled_sec: float


def tick_offsets(rate_per_sec: float, duration_sec: float) -> Iterator[float]:
    """Offsets ``k / rate`` from run start, for every k whose offset is before the duration."""
    for seq in range(math.floor(rate_per_sec * duration_sec) + 1):
        offset = seq / rate_per_sec
        if offset >= duration_sec:
            return
        yield offset


def planned_tick_count(rate_per_sec: float, duration_sec: float) -> int:
    boundary = math.floor(rate_per_sec * duration_sec)
    if boundary / rate_per_sec < duration_sec:
        return boundary + 1
    return boundary


async def ticks(
    rate_per_sec: float,
    duration_sec: float,
    started_mono: float | None = None,
) -> AsyncIterator[DispatchTick]:
    """Emit ticks at absolute deadlines ``start + k / rate`` until the duration elapses.

    Each deadline is computed from the fixed start, so time spent by the consumer
    between ticks does not accumulate as drift. Emission stops once wall time
    reaches the duration, whether or not the planned ticks have all fired, and
    not before: the generator is exhausted only once the full window has passed.
    """
    if started_mono is None:
        started_mono = time.perf_counter()
    for seq, offset in enumerate(tick_offsets(rate_per_sec, duration_sec)):
        await _sleep_until_time(started_mono + offset)
        if time.perf_counter() - started_mono >= duration_sec:
            return
        yield DispatchTick(seq=seq, scheduled_sec=offset)
    await _sleep_until_time(started_mono + duration_sec)


async def _sleep_until_time(target: float) -> None:
    while True:
        delay = target - time.perf_counter()
        if delay <= 0:
            return
        await asyncio.sleep(delay)
