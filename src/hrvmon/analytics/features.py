"""Artifact rejection and time-domain HRV metrics.

This is the numeric foundation of the pipeline.  It provides:
  - A single-pass relative-change outlier filter for RR series
  - Mean RR / mean HR
  - SDNN (population standard deviation) and RMSSD

All functions are pure and operate on chronologically ordered RR values (ms).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

OUTLIER_THRESHOLD = 0.20  # max relative change from the last kept value


# ---------------------------------------------------------------------------
# Artifact rejection
# ---------------------------------------------------------------------------


def filter_outliers(
    rr_intervals: Sequence[float],
    threshold: float = OUTLIER_THRESHOLD,
) -> list[float]:
    """Drop RR values that jump too far from the last accepted value.

    The first value is always kept and becomes the anchor.  Each following
    value is compared to the anchor (not to the raw previous value); it is
    kept, and becomes the new anchor, when ``|v - anchor| / anchor`` is at
    most *threshold*.  Rejected values leave the anchor unchanged.
    """
    if len(rr_intervals) == 0:
        return []

    kept = [float(rr_intervals[0])]
    anchor = kept[0]
    for value in rr_intervals[1:]:
        value = float(value)
        if anchor > 0 and abs(value - anchor) / anchor <= threshold:
            kept.append(value)
            anchor = value
    return kept


# ---------------------------------------------------------------------------
# HRV metrics
# ---------------------------------------------------------------------------


def compute_mean_rr(rr_intervals: Sequence[float]) -> float:
    """Arithmetic mean of the RR intervals (ms), 0 when empty."""
    if len(rr_intervals) == 0:
        return 0.0
    return float(np.mean(np.asarray(rr_intervals, dtype=np.float64)))


def compute_mean_hr(rr_intervals: Sequence[float]) -> float:
    """Mean heart rate (bpm) derived from the mean RR interval."""
    mean_rr = compute_mean_rr(rr_intervals)
    if mean_rr <= 0:
        return 0.0
    return 60000.0 / mean_rr


def compute_sdnn(rr_intervals: Sequence[float]) -> float:
    """Standard deviation of NN intervals (ms).

    Uses the population variance (divide by N).  Returns 0 for fewer than
    2 intervals.
    """
    if len(rr_intervals) < 2:
        return 0.0
    arr = np.asarray(rr_intervals, dtype=np.float64)
    return float(np.std(arr, ddof=0))


def compute_rmssd(rr_intervals: Sequence[float]) -> float:
    """Root mean square of successive RR-interval differences (ms).

    Returns 0 for fewer than 2 intervals.
    """
    if len(rr_intervals) < 2:
        return 0.0
    arr = np.asarray(rr_intervals, dtype=np.float64)
    diffs = np.diff(arr)
    return float(np.sqrt(np.mean(diffs ** 2)))


@dataclass(frozen=True)
class HRVMetrics:
    """Time-domain HRV metrics for one window snapshot."""

    sdnn: float = 0.0
    rmssd: float = 0.0
    mean_rr: float = 0.0
    mean_hr: float = 0.0
    n_intervals: int = 0

    @property
    def insufficient(self) -> bool:
        """True when fewer than 2 intervals were available."""
        return self.n_intervals < 2

    def to_dict(self) -> dict[str, float]:
        return {
            "sdnn": self.sdnn,
            "rmssd": self.rmssd,
            "mean_rr": self.mean_rr,
            "mean_hr": self.mean_hr,
            "n_intervals": self.n_intervals,
        }

    def __repr__(self) -> str:
        return (
            f"HRVMetrics(rmssd={self.rmssd:.1f}ms, sdnn={self.sdnn:.1f}ms, "
            f"mean_rr={self.mean_rr:.0f}ms, mean_hr={self.mean_hr:.0f}bpm, "
            f"n={self.n_intervals})"
        )


def compute_hrv_metrics(rr_intervals: Sequence[float]) -> HRVMetrics:
    """Compute all time-domain metrics for an (already filtered) RR series."""
    return HRVMetrics(
        sdnn=compute_sdnn(rr_intervals),
        rmssd=compute_rmssd(rr_intervals),
        mean_rr=compute_mean_rr(rr_intervals),
        mean_hr=compute_mean_hr(rr_intervals),
        n_intervals=len(rr_intervals),
    )
