from __future__ import annotations

import asyncio
import logging

from paine.loadgen.client import Probe
from paine.loadgen.scheduler import DispatchTick
from paine.metrics import NetworkError, OverloadRejection, ProbeOutcome, ResultCollector, Timeout

logger = logging.getLogger(__name__)

CANCEL_SETTLE_SEC = 0.1


class Dispatcher:
    """Starts one probe task per tick, up to ``max_in_flight`` concurrently.

    ``dispatch`` never waits on a probe. A tick that arrives while the ceiling is
    saturated is recorded as an overload rejection instead of being queued.
    """

    def __init__(
        self,
        probe: Probe,
        collector: ResultCollector,
        url: str,
        timeout_sec: float,
        max_in_flight: int,
    ) -> None:
        self.probe = probe
        self.collector = collector
        self.url = url
        self.timeout_sec = timeout_sec
        self.max_in_flight = max_in_flight
        self._tasks: dict[asyncio.Task[None], int] = {}
        self._abandoned: set[int] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def dispatch(self, tick: DispatchTick) -> None:
        self.collector.mark_dispatched()
        if len(self._tasks) >= self.max_in_flight:
            self.collector.record(OverloadRejection(in_flight=len(self._tasks)))
            return
        task = asyncio.create_task(self._run_probe(tick), name=f"probe-{tick.seq}")
        self._tasks[task] = tick.seq
        task.add_done_callback(self._forget)

    def _forget(self, task: asyncio.Task[None]) -> None:
        self._tasks.pop(task, None)

    async def _run_probe(self, tick: DispatchTick) -> None:
        try:
            outcome: ProbeOutcome = await self.probe(self.url, self.timeout_sec)
        except Exception as exc:  # noqa: BLE001
            outcome = NetworkError(reason=f"{type(exc).__name__}: {exc}")
        if tick.seq in self._abandoned:
            # Already counted as a timeout at the drain deadline.
            return
        self.collector.record(outcome)

    async def drain(self, grace_sec: float) -> int:
        """Wait up to ``grace_sec`` for in-flight probes, then count the rest as timeouts."""
        if not self._tasks:
            return 0
        if grace_sec > 0:
            _, pending = await asyncio.wait(set(self._tasks), timeout=grace_sec)
        else:
            pending = {task for task in self._tasks if not task.done()}
        if not pending:
            return 0
        for task in pending:
            self._abandoned.add(self._tasks[task])
            task.cancel()
            self.collector.record(Timeout(forced=True))
        logger.warning(
            "%d probe(s) still outstanding %.2fs after ticking stopped; counted as timeouts",
            len(pending),
            grace_sec,
        )
        await asyncio.wait(pending, timeout=CANCEL_SETTLE_SEC)
        return len(pending)
