"""Tests for hrvmon.analytics.buffer -- the time-windowed RR buffer."""

import pytest

from hrvmon.analytics.buffer import IntervalRecord, WindowedIntervalBuffer

from tests.conftest import FakeClock, make_sample


class TestAppend:
    def test_records_stamped_with_capture_time(self):
        buf = WindowedIntervalBuffer(clock=FakeClock(0.0))
        added = buf.append(make_sample([800.0, 810.0], at=0.0))
        assert added == 2
        assert buf.records() == [
            IntervalRecord(value=800.0, timestamp=0.0),
            IntervalRecord(value=810.0, timestamp=0.0),
        ]

    def test_chronological_order(self):
        clock = FakeClock()
        buf = WindowedIntervalBuffer(clock=clock)
        for i, rr in enumerate([800.0, 820.0, 790.0]):
            clock.now = i * 1000.0
            buf.append(make_sample([rr], at=clock.now))
        assert buf.snapshot() == [800.0, 820.0, 790.0]

    def test_sample_without_rr(self):
        buf = WindowedIntervalBuffer(clock=FakeClock())
        assert buf.append(make_sample([], at=0.0)) == 0
        assert len(buf) == 0

    def test_non_positive_values_skipped(self):
        buf = WindowedIntervalBuffer(clock=FakeClock())
        buf.append(make_sample([0.0, 800.0], at=0.0))
        assert buf.snapshot() == [800.0]

    def test_append_prunes_expired(self):
        clock = FakeClock()
        buf = WindowedIntervalBuffer(window_ms=60_000, clock=clock)
        buf.append(make_sample([800.0], at=0.0))
        clock.now = 60_500.0
        buf.append(make_sample([810.0], at=60_500.0))
        assert len(buf) == 1
        assert buf.snapshot() == [810.0]


class TestWindowBoundary:
    def _buffer_with_record_at_zero(self):
        buf = WindowedIntervalBuffer(window_ms=60_000, clock=FakeClock(0.0))
        buf.append(make_sample([800.0], at=0.0))
        return buf

    def test_expired_after_window(self):
        buf = self._buffer_with_record_at_zero()
        assert buf.snapshot(now=60_001.0) == []

    def test_present_before_window_end(self):
        buf = self._buffer_with_record_at_zero()
        assert buf.snapshot(now=59_999.0) == [800.0]

    def test_inclusive_at_exact_window(self):
        buf = self._buffer_with_record_at_zero()
        assert buf.snapshot(now=60_000.0) == [800.0]

    def test_snapshot_does_not_mutate(self):
        buf = self._buffer_with_record_at_zero()
        buf.snapshot(now=120_000.0)
        assert len(buf) == 1

    def test_prune_reports_dropped(self):
        buf = self._buffer_with_record_at_zero()
        assert buf.prune(now=60_000.0) == 0
        assert buf.prune(now=60_001.0) == 1
        assert len(buf) == 0

    def test_prune_uses_clock(self):
        clock = FakeClock(0.0)
        buf = WindowedIntervalBuffer(window_ms=1000, clock=clock)
        buf.append(make_sample([800.0], at=0.0))
        clock.now = 1500.0
        buf.prune()
        assert len(buf) == 0


class TestClear:
    def test_clear(self):
        buf = WindowedIntervalBuffer(clock=FakeClock())
        buf.append(make_sample([800.0, 810.0], at=0.0))
        buf.clear()
        assert len(buf) == 0
        assert buf.snapshot() == []
