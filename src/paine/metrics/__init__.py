from __future__ import annotations

from paine.metrics.aggregator import build_report, nearest_rank, summarize_latencies
from paine.metrics.collector import ResultCollector
from paine.metrics.models import (
    ErrorType,
    LatencySummary,
    NetworkError,
    OverloadRejection,
    ProbeOutcome,
    RunReport,
    RunStatistics,
    Success,
    Timeout,
)

__all__ = [
    "ErrorType",
    "LatencySummary",
    "NetworkError",
    "OverloadRejection",
    "ProbeOutcome",
    "ResultCollector",
    "RunReport",
    "RunStatistics",
    "Success",
    "Timeout",
    "build_report",
    "nearest_rank",
    "summarize_latencies",
]
