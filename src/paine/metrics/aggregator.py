from __future__ import annotations

import math
from collections import Counter
from datetime import datetime
from typing import Iterable, Sequence

import numpy as np

from paine.config import RunConfig
from paine.metrics.models import LatencySummary, RunReport, RunStatistics


def nearest_rank(sorted_samples: Sequence[float] | np.ndarray, p: float) -> float:
    """Nearest-rank percentile: index ``ceil(p * n) - 1`` clamped to the sample range."""
    n = len(sorted_samples)
    if n == 0:
        msg = "Cannot take a percentile of an empty sample set"
        raise ValueError(msg)
    if not 0.0 <= p <= 1.0:
        msg = f"Percentile must be within [0, 1], got {p}"
        raise ValueError(msg)
    # Rounding guards products like 0.95 * 20 that land a hair above an integer.
    idx = math.ceil(round(p * n, 9)) - 1
    idx = min(max(idx, 0), n - 1)
    return float(sorted_samples[idx])


def summarize_latencies(samples: Iterable[float]) -> LatencySummary | None:
    ordered = np.sort(np.fromiter(samples, dtype=float))
    if ordered.size == 0:
        return None
    return LatencySummary(
        min_ms=float(ordered[0]),
        mean_ms=float(ordered.mean()),
        max_ms=float(ordered[-1]),
        p50_ms=nearest_rank(ordered, 0.50),
        p95_ms=nearest_rank(ordered, 0.95),
        p99_ms=nearest_rank(ordered, 0.99),
    )


def build_report(
    config: RunConfig,
    stats: RunStatistics,
    elapsed_sec: float,
    started_at: datetime,
    run_id: str,
) -> RunReport:
    status_classes: Counter[str] = Counter()
    for code, count in stats.status_codes.items():
        status_classes[f"{code // 100}xx"] += count
    if elapsed_sec > 0:
        achieved_rate = stats.dispatched / elapsed_sec
        throughput = stats.successes / elapsed_sec
    else:
        achieved_rate = throughput = 0.0
    return RunReport(
        run_id=run_id,
        url=config.url,
        started_at=started_at,
        configured_rate=config.rate_per_sec,
        elapsed_sec=elapsed_sec,
        total_dispatched=stats.dispatched,
        succeeded=stats.successes,
        timeouts=stats.timeouts,
        forced_timeouts=stats.forced_timeouts,
        network_errors=stats.network_errors,
        network_errors_by_type={err.value: n for err, n in stats.network_errors_by_type.items()},
        network_error_reasons=dict(stats.network_error_reasons),
        overload_rejections=stats.overload_rejections,
        status_codes=dict(sorted(stats.status_codes.items())),
        status_classes=dict(sorted(status_classes.items())),
        latency=summarize_latencies(stats.latencies_ms),
        achieved_rate=achieved_rate,
        throughput=throughput,
    )
