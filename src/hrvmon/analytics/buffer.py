"""Time-windowed RR interval buffer.

Keeps only the intervals captured within the last ``window_ms`` of the
monotonic clock.  Records are appended at the tail and expired from the head,
so each append is amortized O(1).
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque

from hrvmon.decoders.hr import Sample
from hrvmon.protocol import monotonic_ms

DEFAULT_WINDOW_MS = 60_000.0


@dataclass(frozen=True)
class IntervalRecord:
    """A single RR interval (ms) and the monotonic time it was captured."""

    value: float
    timestamp: float


class WindowedIntervalBuffer:
    """Append-only RR store pruned to a trailing time window.

    A record survives while ``now - record.timestamp <= window_ms``; the
    boundary is inclusive.
    """

    def __init__(
        self,
        window_ms: float = DEFAULT_WINDOW_MS,
        clock: Callable[[], float] = monotonic_ms,
    ) -> None:
        self.window_ms = float(window_ms)
        self._clock = clock
        self._records: Deque[IntervalRecord] = deque()

    def __len__(self) -> int:
        return len(self._records)

    def append(self, sample: Sample, now: float | None = None) -> int:
        """Add the sample's RR intervals, then prune.

        Returns the number of records appended.
        """
        added = 0
        for value in sample.rr_intervals_ms:
            if value <= 0:
                continue
            self._records.append(IntervalRecord(value=float(value), timestamp=sample.captured_at))
            added += 1
        self.prune(now)
        return added

    def prune(self, now: float | None = None) -> int:
        """Drop expired records from the head. Returns how many were dropped."""
        if now is None:
            now = self._clock()
        dropped = 0
        while self._records and now - self._records[0].timestamp > self.window_ms:
            self._records.popleft()
            dropped += 1
        return dropped

    def snapshot(self, now: float | None = None) -> list[float]:
        """Return the in-window RR values in chronological order.

        Does not mutate the buffer.
        """
        if now is None:
            now = self._clock()
        return [r.value for r in self._records if now - r.timestamp <= self.window_ms]

    def records(self) -> list[IntervalRecord]:
        return list(self._records)

    def clear(self) -> None:
        self._records.clear()
