"""Pipeline configuration.

Defaults live here; any of them can be overridden from the environment:

    HRVMON_WINDOW_MS
    HRVMON_OUTLIER_THRESHOLD
    HRVMON_HISTORY_CAPACITY
    HRVMON_TREND_WINDOW
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field

from hrvmon.analytics.buffer import DEFAULT_WINDOW_MS
from hrvmon.analytics.features import OUTLIER_THRESHOLD
from hrvmon.analytics.history import HISTORY_CAPACITY
from hrvmon.analytics.interpretation import DEFAULT_THRESHOLDS, Thresholds
from hrvmon.analytics.trend import TREND_WINDOW
from hrvmon.errors import ConfigurationError


@dataclass(frozen=True)
class PipelineSettings:
    """Tunables for one :class:`~hrvmon.analytics.pipeline.HRVPipeline`."""

    window_ms: float = DEFAULT_WINDOW_MS
    outlier_threshold: float = OUTLIER_THRESHOLD
    history_capacity: int = HISTORY_CAPACITY
    trend_window: int = TREND_WINDOW
    thresholds: Thresholds = field(default_factory=lambda: DEFAULT_THRESHOLDS)

    def __post_init__(self) -> None:
        if not math.isfinite(self.window_ms) or self.window_ms <= 0:
            raise ConfigurationError(f"window_ms must be a finite number > 0, got {self.window_ms}")
        if not math.isfinite(self.outlier_threshold) or self.outlier_threshold <= 0:
            raise ConfigurationError(
                f"outlier_threshold must be a finite number > 0, got {self.outlier_threshold}"
            )
        if self.history_capacity < 1:
            raise ConfigurationError(
                f"history_capacity must be >= 1, got {self.history_capacity}"
            )
        if self.trend_window < 2:
            raise ConfigurationError(f"trend_window must be >= 2, got {self.trend_window}")
        if self.trend_window > self.history_capacity:
            raise ConfigurationError(
                f"trend_window ({self.trend_window}) cannot exceed "
                f"history_capacity ({self.history_capacity})"
            )
        if not isinstance(self.thresholds, Thresholds):
            raise ConfigurationError("thresholds must be a Thresholds instance")


def _env(name: str, cast, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name}={raw!r} is not a valid {cast.__name__}") from e


def settings_from_env(**overrides) -> PipelineSettings:
    """Build settings from HRVMON_* environment variables.

    Keyword *overrides* win over the environment.
    """
    values = {
        "window_ms": _env("HRVMON_WINDOW_MS", float, DEFAULT_WINDOW_MS),
        "outlier_threshold": _env("HRVMON_OUTLIER_THRESHOLD", float, OUTLIER_THRESHOLD),
        "history_capacity": _env("HRVMON_HISTORY_CAPACITY", int, HISTORY_CAPACITY),
        "trend_window": _env("HRVMON_TREND_WINDOW", int, TREND_WINDOW),
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return PipelineSettings(**values)
