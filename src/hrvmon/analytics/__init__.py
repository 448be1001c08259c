"""Analytics engine for real-time HRV from RR interval streams.

Modules:
    buffer         -- Time-windowed RR interval buffer
    features       -- Outlier rejection and time-domain HRV metrics
    history        -- Bounded metric histories (ring buffers)
    trend          -- Improving / declining / stable trend detection
    interpretation -- Rule-based HRV state classification
    pipeline       -- Per-sample recompute pass tying the above together
"""

from hrvmon.analytics.buffer import IntervalRecord, WindowedIntervalBuffer
from hrvmon.analytics.features import (
    HRVMetrics,
    compute_hrv_metrics,
    compute_mean_hr,
    compute_mean_rr,
    compute_rmssd,
    compute_sdnn,
    filter_outliers,
)
from hrvmon.analytics.history import MetricHistory, RingBuffer
from hrvmon.analytics.trend import Trend, detect_trend
from hrvmon.analytics.interpretation import (
    Category,
    HRVStatus,
    Interpretation,
    MetricRange,
    Thresholds,
    DEFAULT_THRESHOLDS,
    categorize,
    interpret,
)

# The pipeline module is not re-exported here: it depends on hrvmon.config,
# which in turn imports the modules above.

__all__ = [
    # buffer
    "IntervalRecord",
    "WindowedIntervalBuffer",
    # features
    "HRVMetrics",
    "compute_hrv_metrics",
    "compute_mean_hr",
    "compute_mean_rr",
    "compute_rmssd",
    "compute_sdnn",
    "filter_outliers",
    # history
    "MetricHistory",
    "RingBuffer",
    # trend
    "Trend",
    "detect_trend",
    # interpretation
    "Category",
    "HRVStatus",
    "Interpretation",
    "MetricRange",
    "Thresholds",
    "DEFAULT_THRESHOLDS",
    "categorize",
    "interpret",
]
