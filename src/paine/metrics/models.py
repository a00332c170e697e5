from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Union


class ErrorType(str, Enum):
    CONNECT = "connect"
    READ = "read"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class Success:
    latency_ms: float
    status_code: int

    @property
    def status_class(self) -> str:
        return f"{self.status_code // 100}xx"


@dataclass(frozen=True, slots=True)
class Timeout:
    latency_ms: float | None = None
    forced: bool = False  # counted at the drain deadline, probe never reported


@dataclass(frozen=True, slots=True)
class NetworkError:
    reason: str
    error_type: ErrorType = ErrorType.OTHER
    status_code: int | None = None  # set when the server answered with a non-2xx status


@dataclass(frozen=True, slots=True)
class OverloadRejection:
    in_flight: int


ProbeOutcome = Union[Success, Timeout, NetworkError, OverloadRejection]


@dataclass(slots=True)
class RunStatistics:
    dispatched: int = 0
    successes: int = 0
    timeouts: int = 0
    forced_timeouts: int = 0
    network_errors: int = 0
    overload_rejections: int = 0
    network_errors_by_type: Counter[ErrorType] = field(default_factory=Counter)
    network_error_reasons: Counter[str] = field(default_factory=Counter)
    status_codes: Counter[int] = field(default_factory=Counter)
    latencies_ms: list[float] = field(default_factory=list)

    @property
    def recorded(self) -> int:
        return self.successes + self.timeouts + self.network_errors + self.overload_rejections

    @property
    def failures(self) -> int:
        return self.timeouts + self.network_errors + self.overload_rejections

    def copy(self) -> RunStatistics:
        return RunStatistics(
            dispatched=self.dispatched,
            successes=self.successes,
            timeouts=self.timeouts,
            forced_timeouts=self.forced_timeouts,
            network_errors=self.network_errors,
            overload_rejections=self.overload_rejections,
            network_errors_by_type=Counter(self.network_errors_by_type),
            network_error_reasons=Counter(self.network_error_reasons),
            status_codes=Counter(self.status_codes),
            latencies_ms=list(self.latencies_ms),
        )


@dataclass(frozen=True, slots=True)
class LatencySummary:
    min_ms: float
    mean_ms: float
    max_ms: float
    p50_ms: float
    p95_ms: float
    p99_ms: float


@dataclass(frozen=True, slots=True)
class RunReport:
    run_id: str
    url: str
    started_at: datetime
    configured_rate: float
    elapsed_sec: float
    total_dispatched: int
    succeeded: int
    timeouts: int
    forced_timeouts: int
    network_errors: int
    network_errors_by_type: dict[str, int]
    network_error_reasons: dict[str, int]
    overload_rejections: int
    status_codes: dict[int, int]
    status_classes: dict[str, int]
    latency: LatencySummary | None
    achieved_rate: float
    throughput: float

    @property
    def failed(self) -> int:
        return self.timeouts + self.network_errors + self.overload_rejections

    @property
    def success_pct(self) -> float:
        if self.total_dispatched == 0:
            return 0.0
        return self.succeeded / self.total_dispatched * 100.0

    @property
    def error_pct(self) -> float:
        if self.total_dispatched == 0:
            return 0.0
        return self.failed / self.total_dispatched * 100.0

    def to_dict(self) -> dict[str, Any]:
        latency: dict[str, float] | None = None
        if self.latency is not None:
            latency = {
                "min_ms": self.latency.min_ms,
                "mean_ms": self.latency.mean_ms,
                "max_ms": self.latency.max_ms,
                "p50_ms": self.latency.p50_ms,
                "p95_ms": self.latency.p95_ms,
                "p99_ms": self.latency.p99_ms,
            }
        return {
            "run_id": self.run_id,
            "url": self.url,
            "started_at": self.started_at.isoformat(),
            "configured_rate": self.configured_rate,
            "elapsed_sec": self.elapsed_sec,
            "total_dispatched": self.total_dispatched,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "timeouts": self.timeouts,
            "forced_timeouts": self.forced_timeouts,
            "network_errors": self.network_errors,
            "network_errors_by_type": dict(self.network_errors_by_type),
            "network_error_reasons": dict(self.network_error_reasons),
            "overload_rejections": self.overload_rejections,
            "status_codes": {str(code): n for code, n in self.status_codes.items()},
            "status_classes": dict(self.status_classes),
            "latency": latency,
            "achieved_rate": self.achieved_rate,
            "throughput": self.throughput,
            "success_pct": self.success_pct,
            "error_pct": self.error_pct,
        }
