from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

DEFAULT_MAX_IN_FLIGHT = 50


class ConfigurationError(ValueError):
    """Raised before any scheduling when a run is configured with invalid values."""


def _require_positive(name: str, value: float) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        msg = f"<{name}> must be a number, got {value!r}"
        raise ConfigurationError(msg)
    if not math.isfinite(value) or value <= 0:
        msg = f"<{name}> must be greater than 0, got {value!r}"
        raise ConfigurationError(msg)


@dataclass(frozen=True, slots=True)
class TargetConfig:
    base_url: str
    timeout_sec: float = 10.0
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.base_url or not self.base_url.strip():
            msg = "<url> must not be empty"
            raise ConfigurationError(msg)
        _require_positive("timeout", self.timeout_sec)


@dataclass(frozen=True, slots=True)
class RunConfig:
    target: TargetConfig
    rate_per_sec: float
    duration_sec: float
    max_in_flight: int = DEFAULT_MAX_IN_FLIGHT
    drain_grace_sec: float | None = None
    run_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    notes: str = ""

    def __post_init__(self) -> None:
        _require_positive("rate", self.rate_per_sec)
        _require_positive("duration", self.duration_sec)
        if isinstance(self.max_in_flight, bool) or not isinstance(self.max_in_flight, int):
            msg = f"<max-in-flight> must be an integer, got {self.max_in_flight!r}"
            raise ConfigurationError(msg)
        if self.max_in_flight <= 0:
            msg = f"<max-in-flight> must be greater than 0, got {self.max_in_flight}"
            raise ConfigurationError(msg)
        if self.drain_grace_sec is not None and (
            not math.isfinite(self.drain_grace_sec) or self.drain_grace_sec < 0
        ):
            msg = f"<drain-grace> must not be negative, got {self.drain_grace_sec!r}"
            raise ConfigurationError(msg)

    @property
    def url(self) -> str:
        return self.target.base_url

    @property
    def timeout_sec(self) -> float:
        return self.target.timeout_sec

    @property
    def tick_interval_sec(self) -> float:
        return 1.0 / self.rate_per_sec

    @property
    def effective_drain_grace_sec(self) -> float:
        # Outstanding probes get one request timeout's worth of extra time by default.
        if self.drain_grace_sec is None:
            return self.target.timeout_sec
        return self.drain_grace_sec

    def to_metadata(self) -> Mapping[str, Any]:
        return {
            "run_id": self.run_id or "",
            "created_at": self.created_at.isoformat(),
            "rate_per_sec": self.rate_per_sec,
            "duration_sec": self.duration_sec,
            "max_in_flight": self.max_in_flight,
            "drain_grace_sec": self.effective_drain_grace_sec,
            "notes": self.notes,
            "target": {
                "base_url": self.target.base_url,
                "timeout_sec": self.target.timeout_sec,
                "headers": dict(self.target.headers),
            },
        }
