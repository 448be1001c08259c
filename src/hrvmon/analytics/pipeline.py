"""Real-time HRV pipeline: wire decoded frames into the analytics engine.

One accepted notification drives one synchronous pass:

    frame -> Sample -> windowed buffer -> outlier filter -> HRV metrics
          -> metric history -> trends -> interpretation

and yields an immutable :class:`PipelineResult`.  The pipeline owns its
buffer and histories; it never sees the BLE connection itself, only frames
and a disconnect signal.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import AsyncIterable, Callable

from hrvmon.analytics.buffer import WindowedIntervalBuffer
from hrvmon.analytics.features import HRVMetrics, compute_hrv_metrics, filter_outliers
from hrvmon.analytics.history import MetricHistory
from hrvmon.analytics.interpretation import WAITING_FOR_DATA, Interpretation, interpret
from hrvmon.analytics.trend import Trend, detect_trend
from hrvmon.config import PipelineSettings
from hrvmon.decoders.hr import HeartRateMeasurementDecoder, Sample
from hrvmon.errors import DecodeError
from hrvmon.protocol import monotonic_ms

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Trends:
    rmssd: Trend = Trend.STABLE
    sdnn: Trend = Trend.STABLE
    heart_rate: Trend = Trend.STABLE

    def to_dict(self) -> dict[str, str]:
        return {
            "rmssd": self.rmssd.value,
            "sdnn": self.sdnn.value,
            "heart_rate": self.heart_rate.value,
        }


@dataclass(frozen=True)
class PipelineResult:
    """Snapshot produced for one accepted sample."""

    sample: Sample
    metrics: HRVMetrics
    interpretation: Interpretation
    trends: Trends = field(default_factory=Trends)
    buffered: int = 0  # RR intervals in the window
    filtered: int = 0  # RR intervals left after outlier rejection

    def to_dict(self) -> dict:
        return {
            "heart_rate": self.sample.heart_rate,
            "rr_intervals_ms": list(self.sample.rr_intervals_ms),
            "captured_at": self.sample.captured_at,
            "metrics": self.metrics.to_dict(),
            "trends": self.trends.to_dict(),
            "interpretation": self.interpretation.to_dict(),
            "buffered": self.buffered,
            "filtered": self.filtered,
        }


class HRVPipeline:
    """Stateful HRV pipeline for one sensor session.

    All recompute passes are serialized by a lock, so notifications delivered
    from another thread never interleave against the same buffer.
    """

    def __init__(
        self,
        settings: PipelineSettings | None = None,
        clock: Callable[[], float] = monotonic_ms,
    ) -> None:
        self.settings = settings or PipelineSettings()
        self._clock = clock
        self._lock = threading.Lock()
        self.buffer = WindowedIntervalBuffer(self.settings.window_ms, clock=clock)
        self.history = MetricHistory(self.settings.history_capacity)
        self.connected = False
        self._heart_rate = 0
        self._metrics = HRVMetrics()
        self._trends = Trends()
        self._interpretation = WAITING_FOR_DATA
        self.last_result: PipelineResult | None = None
        self.last_error: DecodeError | None = None
        self.samples_processed = 0
        self.decode_errors = 0

    # ------------------------------------------------------------------
    # Collaborator surface
    # ------------------------------------------------------------------

    def on_frame(self, frame: bytes | bytearray) -> PipelineResult | None:
        """Decode a raw 0x2A37 value and process it.

        Returns None (after reporting the error) when the frame is malformed.
        """
        try:
            sample = HeartRateMeasurementDecoder.decode(frame, captured_at=self._clock())
        except DecodeError as e:
            self.on_decode_error(e)
            return None
        return self.on_sample(sample)

    def on_sample(self, sample: Sample) -> PipelineResult:
        """Run one full recompute pass for an accepted sample."""
        with self._lock:
            return self._process(sample)

    def on_decode_error(self, error: DecodeError) -> None:
        with self._lock:
            self.decode_errors += 1
            self.last_error = error
        logger.warning("Dropped malformed frame: %s", error)

    def on_connect(self) -> None:
        """Start a fresh session: all state is cleared."""
        self.reset()
        self.connected = True
        logger.info("Sensor connected; pipeline state reset")

    def on_disconnect(self) -> None:
        """Mark the session disconnected.  Buffer and history are kept."""
        self.connected = False
        logger.info(
            "Sensor disconnected; keeping %d buffered intervals and %d RMSSD readings",
            len(self.buffer),
            len(self.history.rmssd),
        )

    def reset(self) -> None:
        with self._lock:
            self.buffer.clear()
            self.history.clear()
            self._heart_rate = 0
            self._metrics = HRVMetrics()
            self._trends = Trends()
            self._interpretation = WAITING_FOR_DATA
            self.last_result = None
            self.last_error = None
            self.samples_processed = 0
            self.decode_errors = 0

    def metrics(self) -> HRVMetrics:
        return self._metrics

    def trends(self) -> Trends:
        return self._trends

    def current_interpretation(self) -> Interpretation:
        return self._interpretation

    @property
    def heart_rate(self) -> int:
        """Heart rate reported by the most recent sample."""
        return self._heart_rate

    async def run(
        self,
        frames: AsyncIterable[bytes],
        on_result: Callable[[PipelineResult], None] | None = None,
    ) -> int:
        """Consume an async frame source until it ends.

        The end of the source is treated as a disconnect.  Returns the number
        of frames accepted.
        """
        accepted = 0
        try:
            async for frame in frames:
                result = self.on_frame(frame)
                if result is None:
                    continue
                accepted += 1
                if on_result is not None:
                    on_result(result)
        finally:
            self.on_disconnect()
        return accepted

    # ------------------------------------------------------------------
    # Recompute pass (caller holds the lock)
    # ------------------------------------------------------------------

    def _process(self, sample: Sample) -> PipelineResult:
        s = self.settings
        now = self._clock()

        self._heart_rate = sample.heart_rate
        self.buffer.append(sample, now=now)

        values = self.buffer.snapshot(now=now)
        filtered = filter_outliers(values, s.outlier_threshold)
        metrics = compute_hrv_metrics(filtered)

        self.history.record(metrics, sample.heart_rate)

        rmssd_history = self.history.rmssd.values()
        trends = Trends(
            rmssd=detect_trend(rmssd_history, s.trend_window),
            sdnn=detect_trend(self.history.sdnn.values(), s.trend_window),
            heart_rate=detect_trend(self.history.heart_rate.values(), s.trend_window),
        )
        interpretation = interpret(
            metrics.rmssd,
            metrics.sdnn,
            sample.heart_rate,
            rmssd_history,
            thresholds=s.thresholds,
            trend_window=s.trend_window,
        )

        result = PipelineResult(
            sample=sample,
            metrics=metrics,
            interpretation=interpretation,
            trends=trends,
            buffered=len(values),
            filtered=len(filtered),
        )
        self._metrics = metrics
        self._trends = trends
        self._interpretation = interpretation
        self.last_result = result
        self.samples_processed += 1

        logger.debug(
            "hr=%d rr=%d/%d %r -> %s",
            sample.heart_rate,
            len(filtered),
            len(values),
            metrics,
            interpretation.status.value,
        )
        return result
