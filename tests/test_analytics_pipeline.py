"""Tests for hrvmon.analytics.pipeline - the per-sample recompute pass."""

import asyncio
import itertools
import logging
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from hrvmon.analytics.interpretation import WAITING_FOR_DATA, HRVStatus
from hrvmon.analytics.pipeline import HRVPipeline, PipelineResult
from hrvmon.analytics.trend import Trend
from hrvmon.config import PipelineSettings
from hrvmon.errors import DecodeError
from hrvmon.protocol import build_measurement

from tests.conftest import FakeClock, make_sample


def feed(pipeline: HRVPipeline, clock: FakeClock, rr_series, hr_bpm: int = 72, step_ms: float = 1000.0):
    """Feed one single-RR sample per second; return the last result."""
    result = None
    for rr in rr_series:
        result = pipeline.on_sample(make_sample([rr], at=clock.now, hr_bpm=hr_bpm))
        clock.advance(step_ms)
    return result


class TestInitialState:
    def test_waiting_for_data(self, clock):
        p = HRVPipeline(clock=clock)
        assert p.current_interpretation() is WAITING_FOR_DATA
        assert p.metrics().insufficient
        assert p.last_result is None
        assert p.connected is False


class TestOnSample:
    def test_outlier_excluded_end_to_end(self, clock):
        p = HRVPipeline(clock=clock)
        result = feed(p, clock, [800.0, 820.0, 1200.0])
        assert result.buffered == 3
        assert result.filtered == 2
        assert result.metrics.mean_rr == pytest.approx(810.0)
        assert result.metrics.rmssd == pytest.approx(20.0)
        assert result.metrics.sdnn == pytest.approx(10.0)

    def test_single_interval_gives_zero_metrics(self, clock):
        p = HRVPipeline(clock=clock)
        result = p.on_sample(make_sample([800.0], at=0.0))
        assert result.metrics.rmssd == 0.0
        assert result.metrics.sdnn == 0.0
        assert len(p.history.rmssd) == 0
        assert p.history.heart_rate.values() == [72.0]

    def test_sample_without_rr_still_updates_heart_rate(self, clock):
        p = HRVPipeline(clock=clock)
        result = p.on_sample(make_sample([], at=0.0, hr_bpm=65))
        assert p.heart_rate == 65
        assert result.buffered == 0

    def test_zero_heart_rate_not_recorded(self, clock):
        p = HRVPipeline(clock=clock)
        p.on_sample(make_sample([800.0], at=0.0, hr_bpm=0))
        assert len(p.history.heart_rate) == 0

    def test_window_expiry(self, clock):
        p = HRVPipeline(clock=clock)
        p.on_sample(make_sample([800.0], at=0.0))
        clock.now = 61_000.0
        result = p.on_sample(make_sample([810.0], at=61_000.0))
        assert result.buffered == 1
        assert result.metrics.insufficient

    def test_custom_window(self, clock):
        p = HRVPipeline(PipelineSettings(window_ms=5000), clock=clock)
        result = feed(p, clock, [800.0] * 10)
        # one sample per second, inclusive 5 s window
        assert result.buffered == 6

    def test_stressed_from_sample_heart_rate(self, clock):
        p = HRVPipeline(clock=clock)
        result = feed(p, clock, [600.0, 605.0, 600.0, 605.0], hr_bpm=100)
        assert result.metrics.rmssd == pytest.approx(5.0)
        assert result.metrics.sdnn == pytest.approx(2.5)
        assert result.interpretation.status is HRVStatus.STRESSED

    def test_history_and_trends(self, clock):
        p = HRVPipeline(clock=clock)
        result = feed(p, clock, [800.0, 850.0, 800.0, 850.0, 800.0, 850.0])
        assert len(p.history.rmssd) == 5
        assert result.trends.rmssd is Trend.STABLE
        assert p.trends() == result.trends

    def test_result_snapshot_is_stored(self, clock):
        p = HRVPipeline(clock=clock)
        result = feed(p, clock, [800.0, 820.0])
        assert p.last_result is result
        assert p.metrics() is result.metrics
        assert p.current_interpretation() is result.interpretation
        assert p.samples_processed == 2

    def test_to_dict(self, clock):
        p = HRVPipeline(clock=clock)
        d = feed(p, clock, [800.0, 820.0]).to_dict()
        assert d["rr_intervals_ms"] == [820.0]
        assert d["metrics"]["rmssd"] == pytest.approx(20.0)
        assert d["trends"]["rmssd"] == "stable"
        assert "status" in d["interpretation"]


class TestOnFrame:
    def test_decodes_and_processes(self, clock):
        p = HRVPipeline(clock=clock)
        clock.now = 1234.0
        result = p.on_frame(build_measurement(60, [1024]))
        assert isinstance(result, PipelineResult)
        assert result.sample.captured_at == 1234.0
        assert result.sample.rr_intervals_ms == (1000.0,)

    def test_malformed_frame_is_reported_not_fatal(self, clock):
        p = HRVPipeline(clock=clock)
        good = feed(p, clock, [800.0, 820.0])
        assert p.on_frame(bytes([0x01, 72])) is None
        assert p.decode_errors == 1
        assert isinstance(p.last_error, DecodeError)
        assert len(p.buffer) == 2
        assert p.last_result is good

        # Next valid frame resumes normally
        assert p.on_frame(build_measurement(60, [840])) is not None

    def test_malformed_frame_logged(self, clock, caplog):
        p = HRVPipeline(clock=clock)
        with caplog.at_level(logging.WARNING, logger="hrvmon.analytics.pipeline"):
            p.on_frame(b"\x00")
        assert "malformed frame" in caplog.text


class TestConnectionLifecycle:
    def test_disconnect_keeps_state(self, clock):
        p = HRVPipeline(clock=clock)
        p.on_connect()
        feed(p, clock, [800.0, 820.0, 810.0])
        rmssd_before = p.history.rmssd.values()
        p.on_disconnect()
        assert p.connected is False
        assert len(p.buffer) == 3
        assert p.history.rmssd.values() == rmssd_before
        assert p.metrics().n_intervals == 3

    def test_connect_resets_state(self, clock):
        p = HRVPipeline(clock=clock)
        feed(p, clock, [800.0, 820.0, 810.0])
        p.on_frame(b"")
        p.on_connect()
        assert p.connected is True
        assert len(p.buffer) == 0
        assert len(p.history.rmssd) == 0
        assert p.decode_errors == 0
        assert p.heart_rate == 0
        assert p.current_interpretation() is WAITING_FOR_DATA


class TestRun:
    def test_consumes_source_then_disconnects(self, clock):
        p = HRVPipeline(clock=clock)
        p.on_connect()
        frames = [
            build_measurement(60, [1024]),
            bytes([0x01]),
            build_measurement(61, [1000]),
        ]

        async def source():
            for f in frames:
                clock.advance(1000.0)
                yield f

        results: list[PipelineResult] = []
        accepted = asyncio.run(p.run(source(), on_result=results.append))
        assert accepted == 2
        assert len(results) == 2
        assert p.decode_errors == 1
        assert p.connected is False
        assert results[-1].metrics.n_intervals == 2


class CountingClock:
    """Thread-safe clock that ticks 1 ms per read."""

    def __init__(self) -> None:
        self._ticks = itertools.count(1)
        self._lock = threading.Lock()
        self.reads = 0

    def __call__(self) -> float:
        with self._lock:
            self.reads += 1
            return float(next(self._ticks))


class TestConcurrentSamples:
    def test_passes_never_interleave(self):
        clock = CountingClock()
        p = HRVPipeline(clock=clock)
        n = 200

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda i: p.on_sample(make_sample([800.0], at=0.0)), range(n)))

        assert p.samples_processed == n
        assert len(p.buffer) == n
        assert clock.reads == n
        # each pass saw exactly one more interval than the pass before it
        counts = [r.buffered for r in results]
        assert sorted(counts) == list(range(1, n + 1))
        assert p.last_result.buffered == n
        assert p.metrics().n_intervals == n
