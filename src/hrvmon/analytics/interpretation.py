"""Rule-based interpretation of HRV state.

Each metric is bucketed as low / normal / high against injected thresholds,
then an ordered decision table is evaluated top to bottom and the first
matching rule decides the status.  Rules are not independent: later rules
assume every earlier rule failed to match.

Guidance is heuristic wellness advice, not a diagnosis.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Sequence

from hrvmon.analytics.trend import TREND_WINDOW, Trend, detect_trend
from hrvmon.errors import ConfigurationError


class HRVStatus(str, Enum):
    OPTIMAL = "optimal"
    GOOD = "good"
    FAIR = "fair"
    STRESSED = "stressed"
    FATIGUED = "fatigued"
    OVERTRAINING = "overtraining"


class Category(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


# ---------------------------------------------------------------------------
# Thresholds
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MetricRange:
    """Low / normal / high boundaries for one metric."""

    low: float
    normal: float
    high: float

    def __post_init__(self) -> None:
        if self.low < 0:
            raise ConfigurationError(f"threshold 'low' must be >= 0, got {self.low}")
        if not self.low < self.normal < self.high:
            raise ConfigurationError(
                "thresholds must satisfy low < normal < high, "
                f"got {self.low}/{self.normal}/{self.high}"
            )


@dataclass(frozen=True)
class Thresholds:
    """Per-metric boundaries (RMSSD and SDNN in ms, HR in bpm)."""

    rmssd: MetricRange = field(default_factory=lambda: MetricRange(20.0, 40.0, 80.0))
    sdnn: MetricRange = field(default_factory=lambda: MetricRange(40.0, 60.0, 100.0))
    hr: MetricRange = field(default_factory=lambda: MetricRange(50.0, 70.0, 90.0))

    def __post_init__(self) -> None:
        for name in ("rmssd", "sdnn", "hr"):
            if not isinstance(getattr(self, name), MetricRange):
                raise ConfigurationError(f"thresholds.{name} must be a MetricRange")


DEFAULT_THRESHOLDS = Thresholds()


def categorize(value: float, bounds: MetricRange) -> Category:
    if value < bounds.low:
        return Category.LOW
    if value > bounds.high:
        return Category.HIGH
    return Category.NORMAL


# ---------------------------------------------------------------------------
# Result and rule state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Interpretation:
    """Classification plus guidance for the current metric state."""

    status: HRVStatus
    title: str
    description: str
    recommendations: tuple[str, ...]
    severity: int  # 0 (no concern) .. 5 (most concerning)

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "title": self.title,
            "description": self.description,
            "recommendations": list(self.recommendations),
            "severity": self.severity,
        }

    def __repr__(self) -> str:
        return f"Interpretation({self.status.value}, {self.title!r}, severity={self.severity})"


@dataclass(frozen=True)
class MetricState:
    """Inputs a rule predicate may look at."""

    rmssd: Category
    sdnn: Category
    hr: Category
    rmssd_trend: Trend
    no_data: bool


@dataclass(frozen=True)
class Rule:
    name: str
    predicate: Callable[[MetricState], bool]
    outcome: Interpretation


WAITING_FOR_DATA = Interpretation(
    status=HRVStatus.GOOD,
    title="Waiting for Data",
    description="Connect your heart rate monitor to start analyzing your HRV metrics.",
    recommendations=(
        "Ensure your device is properly connected",
        "Make sure you are sitting or lying still",
    ),
    severity=0,
)

STRESSED = Interpretation(
    status=HRVStatus.STRESSED,
    title="High Stress Detected",
    description=(
        "Low HRV combined with an elevated heart rate points to significant "
        "stress or fatigue, with sympathetic dominance."
    ),
    recommendations=(
        "Prioritize rest and recovery today",
        "Avoid intense training or stressful activities",
        "Practice deep breathing or meditation",
        "Ensure adequate sleep (7-9 hours)",
        "Stay hydrated and eat nutritious meals",
    ),
    severity=4,
)

OPTIMAL = Interpretation(
    status=HRVStatus.OPTIMAL,
    title="Excellent Recovery",
    description=(
        "Metrics indicate optimal recovery and readiness. The parasympathetic "
        "nervous system is well balanced."
    ),
    recommendations=(
        "Good time for challenging workouts or training",
        "Maintain your current sleep and recovery routines",
        "Continue healthy nutrition habits",
        "Stay consistent with stress management practices",
    ),
    severity=1,
)

OVERTRAINING = Interpretation(
    status=HRVStatus.OVERTRAINING,
    title="Overtraining Warning",
    description=(
        "RMSSD has been declining progressively, an early warning sign of "
        "overtraining that can show up before physical symptoms."
    ),
    recommendations=(
        "Take 1-3 days of complete rest or active recovery",
        "Reduce training volume and intensity by 50%",
        "Focus on sleep quality and duration",
        "Consider stress management techniques",
        "Monitor your metrics daily for improvement",
        "Consult a coach or healthcare provider if symptoms persist",
    ),
    severity=5,
)

REDUCED_RECOVERY = Interpretation(
    status=HRVStatus.FAIR,
    title="Reduced Recovery",
    description=(
        "Short-term HRV is lower than optimal, suggesting incomplete recovery. "
        "The other metrics are stable."
    ),
    recommendations=(
        "Opt for lighter training today",
        "Focus on recovery activities (stretching, yoga, walking)",
        "Ensure quality sleep tonight",
        "Monitor trends over the next few days",
    ),
    severity=3,
)

FATIGUED = Interpretation(
    status=HRVStatus.FATIGUED,
    title="Elevated Heart Rate",
    description=(
        "Heart rate is elevated despite normal HRV. This could indicate "
        "physical fatigue, dehydration or illness."
    ),
    recommendations=(
        "Check for signs of illness or infection",
        "Ensure proper hydration",
        "Reduce training intensity",
        "Get extra sleep if possible",
        "Monitor body temperature and other symptoms",
    ),
    severity=3,
)

RECOVERY_IMPROVING = Interpretation(
    status=HRVStatus.GOOD,
    title="Recovery Improving",
    description=(
        "HRV is trending upward, indicating improving recovery and adaptation."
    ),
    recommendations=(
        "Continue current training and recovery balance",
        "Gradually increase training load if desired",
        "Maintain good sleep and nutrition habits",
        "Monitor for any sudden changes",
    ),
    severity=2,
)

GOOD_RECOVERY = Interpretation(
    status=HRVStatus.GOOD,
    title="Good Recovery State",
    description=(
        "HRV metrics are within healthy ranges. You appear to be recovering "
        "well and ready for moderate activity."
    ),
    recommendations=(
        "Proceed with planned training",
        "Maintain consistent sleep schedule",
        "Stay hydrated and eat well",
        "Continue monitoring your metrics",
    ),
    severity=2,
)

_NOT_LOW = (Category.NORMAL, Category.HIGH)
_NOT_HIGH = (Category.LOW, Category.NORMAL)

# Ordered decision table: first match wins.  Stressed sits above overtraining,
# so stressed wins whenever both match.
RULES: tuple[Rule, ...] = (
    Rule("waiting", lambda s: s.no_data, WAITING_FOR_DATA),
    Rule(
        "stressed",
        lambda s: s.rmssd is Category.LOW and s.hr is Category.HIGH and s.sdnn is Category.LOW,
        STRESSED,
    ),
    Rule(
        "optimal",
        lambda s: s.rmssd in _NOT_LOW and s.hr in _NOT_HIGH and s.sdnn in _NOT_LOW,
        OPTIMAL,
    ),
    Rule(
        "overtraining",
        lambda s: s.rmssd_trend is Trend.DECLINING and s.rmssd is Category.LOW,
        OVERTRAINING,
    ),
    Rule(
        "reduced_recovery",
        lambda s: s.rmssd is Category.LOW and s.hr is Category.NORMAL and s.sdnn is Category.NORMAL,
        REDUCED_RECOVERY,
    ),
    Rule(
        "fatigued",
        lambda s: s.hr is Category.HIGH and (s.rmssd is Category.NORMAL or s.sdnn is Category.NORMAL),
        FATIGUED,
    ),
    Rule(
        "recovery_improving",
        lambda s: s.rmssd_trend is Trend.IMPROVING and s.rmssd is not Category.LOW,
        RECOVERY_IMPROVING,
    ),
    Rule("default", lambda s: True, GOOD_RECOVERY),
)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def metric_state(
    rmssd: float,
    sdnn: float,
    heart_rate: float,
    rmssd_history: Sequence[float] | None = None,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
    trend_window: int = TREND_WINDOW,
) -> MetricState:
    """Bucket the current metrics and derive the RMSSD trend."""
    rmssd_trend = Trend.STABLE
    if rmssd_history is not None and len(rmssd_history) >= trend_window:
        rmssd_trend = detect_trend(rmssd_history, trend_window)

    return MetricState(
        rmssd=categorize(rmssd, thresholds.rmssd),
        sdnn=categorize(sdnn, thresholds.sdnn),
        hr=categorize(heart_rate, thresholds.hr),
        rmssd_trend=rmssd_trend,
        no_data=rmssd == 0 and sdnn == 0 and heart_rate == 0,
    )


def match_rule(state: MetricState, rules: Sequence[Rule] = RULES) -> Rule:
    """Return the first rule whose predicate holds."""
    for rule in rules:
        if rule.predicate(state):
            return rule
    raise LookupError("no interpretation rule matched")


def interpret(
    rmssd: float,
    sdnn: float,
    heart_rate: float,
    rmssd_history: Sequence[float] | None = None,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
    trend_window: int = TREND_WINDOW,
) -> Interpretation:
    """Classify the current HRV state.

    Args:
        rmssd: Current RMSSD (ms).
        sdnn: Current SDNN (ms).
        heart_rate: Current heart rate (bpm).
        rmssd_history: Recent non-zero RMSSD readings, oldest first.
        thresholds: Category boundaries.
        trend_window: History points needed before the trend is considered.

    Returns:
        The outcome of the first matching rule in :data:`RULES`.
    """
    state = metric_state(rmssd, sdnn, heart_rate, rmssd_history, thresholds, trend_window)
    return match_rule(state).outcome
