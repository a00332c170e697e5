from __future__ import annotations

from paine.config.models import (
    DEFAULT_MAX_IN_FLIGHT,
    ConfigurationError,
    RunConfig,
    TargetConfig,
)

__all__ = [
    "DEFAULT_MAX_IN_FLIGHT",
    "ConfigurationError",
    "RunConfig",
    "TargetConfig",
]
