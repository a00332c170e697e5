from __future__ import annotations

import asyncio

from paine.loadgen.dispatcher import Dispatcher
from paine.loadgen.scheduler import DispatchTick
from paine.metrics import ProbeOutcome, ResultCollector, Success


def test_ceiling_turns_excess_ticks_into_overload() -> None:
    async def scenario() -> ResultCollector:
        release = asyncio.Event()

        async def probe(url: str, timeout_sec: float) -> ProbeOutcome:
            await release.wait()
            return Success(latency_ms=1.0, status_code=200)

        collector = ResultCollector()
        dispatcher = Dispatcher(probe, collector, "http://example.test/", 1.0, max_in_flight=3)
        for seq in range(5):
            dispatcher.dispatch(DispatchTick(seq=seq, scheduled_sec=0.0))
        assert dispatcher.in_flight == 3
        release.set()
        assert await dispatcher.drain(1.0) == 0
        assert dispatcher.in_flight == 0
        return collector

    stats = asyncio.run(scenario()).snapshot()
    assert stats.dispatched == 5
    assert stats.successes == 3
    assert stats.overload_rejections == 2


def test_raising_probe_is_recorded_as_network_error() -> None:
    async def scenario() -> ResultCollector:
        async def probe(url: str, timeout_sec: float) -> ProbeOutcome:
            raise RuntimeError("socket exploded")

        collector = ResultCollector()
        dispatcher = Dispatcher(probe, collector, "http://example.test/", 1.0, max_in_flight=10)
        dispatcher.dispatch(DispatchTick(seq=0, scheduled_sec=0.0))
        await dispatcher.drain(1.0)
        return collector

    stats = asyncio.run(scenario()).snapshot()
    assert stats.network_errors == 1
    assert stats.network_error_reasons == {"RuntimeError: socket exploded": 1}
    assert stats.dispatched == stats.recorded == 1


def test_drain_abandons_stuck_probe_exactly_once() -> None:
    async def scenario() -> tuple[ResultCollector, int]:
        async def probe(url: str, timeout_sec: float) -> ProbeOutcome:
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                # A probe that reports late after being abandoned must not be counted twice.
                return Success(latency_ms=999.0, status_code=200)
            raise AssertionError("unreachable")

        collector = ResultCollector()
        dispatcher = Dispatcher(probe, collector, "http://example.test/", 1.0, max_in_flight=10)
        dispatcher.dispatch(DispatchTick(seq=0, scheduled_sec=0.0))
        dispatcher.dispatch(DispatchTick(seq=1, scheduled_sec=0.1))
        abandoned = await dispatcher.drain(0.05)
        await asyncio.sleep(0.01)
        return collector, abandoned

    collector, abandoned = asyncio.run(scenario())
    stats = collector.snapshot()
    assert abandoned == 2
    assert stats.timeouts == stats.forced_timeouts == 2
    assert stats.successes == 0
    assert stats.dispatched == stats.recorded == 2
