"""Bounded recency history of HRV metrics, feeding trend detection."""

from __future__ import annotations

from hrvmon.analytics.features import HRVMetrics

HISTORY_CAPACITY = 10


class RingBuffer:
    """Fixed-capacity FIFO of floats backed by preallocated slots.

    Once full, each append overwrites the oldest slot.
    """

    def __init__(self, capacity: int = HISTORY_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._slots = [0.0] * capacity
        self._start = 0
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def append(self, value: float) -> None:
        if self._size < self.capacity:
            self._slots[(self._start + self._size) % self.capacity] = float(value)
            self._size += 1
        else:
            self._slots[self._start] = float(value)
            self._start = (self._start + 1) % self.capacity

    def values(self) -> list[float]:
        """Values from oldest to newest."""
        return [self._slots[(self._start + i) % self.capacity] for i in range(self._size)]

    def clear(self) -> None:
        self._start = 0
        self._size = 0

    def __repr__(self) -> str:
        return f"RingBuffer({self.values()}, capacity={self.capacity})"


class MetricHistory:
    """Last-N non-zero readings of RMSSD, SDNN and heart rate."""

    def __init__(self, capacity: int = HISTORY_CAPACITY) -> None:
        self.rmssd = RingBuffer(capacity)
        self.sdnn = RingBuffer(capacity)
        self.heart_rate = RingBuffer(capacity)

    def record_metrics(self, metrics: HRVMetrics) -> None:
        # A zero metric means "not enough data" and is never recorded
        if metrics.rmssd > 0:
            self.rmssd.append(metrics.rmssd)
        if metrics.sdnn > 0:
            self.sdnn.append(metrics.sdnn)

    def record_heart_rate(self, heart_rate: float) -> None:
        if heart_rate > 0:
            self.heart_rate.append(heart_rate)

    def clear(self) -> None:
        self.rmssd.clear()
        self.sdnn.clear()
        self.heart_rate.clear()

    def record(self, metrics: HRVMetrics, heart_rate: float) -> None:
        """Record one recompute pass; non-positive values are ignored."""
        self.record_metrics(metrics)
        self.record_heart_rate(heart_rate)
