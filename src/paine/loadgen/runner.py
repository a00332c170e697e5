from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Awaitable, Callable

import httpx

from paine.config import RunConfig
from paine.loadgen.client import HttpProbe, Probe
from paine.loadgen.dispatcher import Dispatcher
from paine.loadgen.scheduler import planned_tick_count, ticks
from paine.metrics import ResultCollector, RunReport, build_report

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], Awaitable[None]]


def _new_run_id() -> str:
    return uuid.uuid4().hex


async def run_load_test(
    config: RunConfig,
    probe: Probe | None = None,
    progress: ProgressCallback | None = None,
) -> RunReport:
    run_id = config.run_id or _new_run_id()
    logger.info(
        "Run %s: GET %s at %.2f req/s for %.2fs (timeout %.2fs, max in flight %d)",
        run_id,
        config.url,
        config.rate_per_sec,
        config.duration_sec,
        config.timeout_sec,
        config.max_in_flight,
    )
    collector = ResultCollector()
    started_at = datetime.now(timezone.utc)
    started_mono = time.perf_counter()
    if probe is None:
        limits = httpx.Limits(
            max_connections=config.max_in_flight,
            max_keepalive_connections=config.max_in_flight,
        )
        async with httpx.AsyncClient(limits=limits, follow_redirects=True) as client:
            http_probe = HttpProbe(client, headers=dict(config.target.headers))
            await _execute_load(config, http_probe, collector, progress, started_mono)
    else:
        await _execute_load(config, probe, collector, progress, started_mono)
    elapsed_sec = time.perf_counter() - started_mono

    stats = collector.snapshot()
    report = build_report(config, stats, elapsed_sec, started_at, run_id)
    logger.info(
        "Run %s complete: %d sent, %d succeeded, %d failed in %.2fs",
        run_id,
        report.total_dispatched,
        report.succeeded,
        report.failed,
        report.elapsed_sec,
    )
    return report


async def _execute_load(
    config: RunConfig,
    probe: Probe,
    collector: ResultCollector,
    progress: ProgressCallback | None,
    started_mono: float,
) -> None:
    dispatcher = Dispatcher(
        probe,
        collector,
        url=config.url,
        timeout_sec=config.timeout_sec,
        max_in_flight=config.max_in_flight,
    )
    planned = planned_tick_count(config.rate_per_sec, config.duration_sec)
    async for tick in ticks(config.rate_per_sec, config.duration_sec, started_mono):
        dispatcher.dispatch(tick)
        if progress:
            await progress(tick.seq + 1, planned)
    logger.debug(
        "Ticking stopped after %d dispatches, %d probe(s) in flight",
        collector.dispatched,
        dispatcher.in_flight,
    )
    await dispatcher.drain(config.effective_drain_grace_sec)
