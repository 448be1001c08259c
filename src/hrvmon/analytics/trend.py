"""Short-term trend detection over a metric history."""

from __future__ import annotations

from enum import Enum
from typing import Sequence

import numpy as np

TREND_WINDOW = 5
TREND_CHANGE_PCT = 10.0


class Trend(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


def detect_trend(
    history: Sequence[float],
    window_size: int = TREND_WINDOW,
    change_pct: float = TREND_CHANGE_PCT,
) -> Trend:
    """Classify the recent direction of a metric.

    The last *window_size* values are split into a first half of
    ``window_size // 2`` values and a second half holding the rest.  The
    percent change between the half means decides the trend: below
    ``-change_pct`` is declining, above ``change_pct`` is improving.

    Too little history, or a zero first-half mean, is reported as stable.
    """
    # A window under 2 leaves the first half empty
    if window_size < 2 or len(history) < window_size:
        return Trend.STABLE

    recent = np.asarray(list(history)[-window_size:], dtype=np.float64)
    midpoint = window_size // 2
    first, second = recent[:midpoint], recent[midpoint:]

    first_mean = float(np.mean(first))
    if first_mean == 0:
        return Trend.STABLE
    second_mean = float(np.mean(second))

    percent_change = (second_mean - first_mean) / first_mean * 100.0
    if percent_change < -change_pct:
        return Trend.DECLINING
    if percent_change > change_pct:
        return Trend.IMPROVING
    return Trend.STABLE
