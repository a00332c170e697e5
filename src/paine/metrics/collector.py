from __future__ import annotations

import logging
import math
import threading

from paine.metrics.models import (
    ErrorType,
    NetworkError,
    OverloadRejection,
    ProbeOutcome,
    RunStatistics,
    Success,
    Timeout,
)

logger = logging.getLogger(__name__)


class ResultCollector:
    """Folds probe outcomes into a single RunStatistics.

    Outcomes arrive in no particular order from any number of in-flight probes,
    possibly from worker threads as well as the event loop. Every mutation goes
    through ``mark_dispatched`` or ``record`` under one lock, so the final counts
    depend only on the multiset of outcomes received.
    """

    def __init__(self) -> None:
        self._stats = RunStatistics()
        self._lock = threading.Lock()

    def mark_dispatched(self) -> None:
        with self._lock:
            self._stats.dispatched += 1

    def record(self, outcome: ProbeOutcome) -> None:
        with self._lock:
            self._fold(outcome)

    def _fold(self, outcome: object) -> None:
        stats = self._stats
        if (
            isinstance(outcome, Success)
            and _is_status(outcome.status_code)
            and _is_latency(outcome.latency_ms)
        ):
            stats.successes += 1
            stats.status_codes[outcome.status_code] += 1
            stats.latencies_ms.append(outcome.latency_ms)
        elif isinstance(outcome, Timeout):
            stats.timeouts += 1
            if outcome.forced:
                stats.forced_timeouts += 1
        elif isinstance(outcome, NetworkError):
            stats.network_errors += 1
            err = outcome.error_type if isinstance(outcome.error_type, ErrorType) else ErrorType.OTHER
            stats.network_errors_by_type[err] += 1
            stats.network_error_reasons[str(outcome.reason)] += 1
            if _is_status(outcome.status_code):
                stats.status_codes[outcome.status_code] += 1
        elif isinstance(outcome, OverloadRejection):
            stats.overload_rejections += 1
        else:
            logger.debug("Unclassified probe outcome %r", outcome)
            stats.network_errors += 1
            stats.network_errors_by_type[ErrorType.OTHER] += 1
            stats.network_error_reasons[f"unclassified outcome: {type(outcome).__name__}"] += 1

    @property
    def dispatched(self) -> int:
        with self._lock:
            return self._stats.dispatched

    @property
    def recorded(self) -> int:
        with self._lock:
            return self._stats.recorded

    def snapshot(self) -> RunStatistics:
        with self._lock:
            return self._stats.copy()


def _is_status(code: object) -> bool:
    return isinstance(code, int) and not isinstance(code, bool) and 100 <= code <= 999


def _is_latency(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value) and value >= 0
