"""Shared fixtures and helpers for the hrvmon test suite."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from hrvmon.decoders.hr import Sample
from hrvmon.protocol import HR_MEASUREMENT_UUID, build_measurement


# ---------------------------------------------------------------------------
# Frame / sample helpers
# ---------------------------------------------------------------------------


def ms_to_ticks(rr_ms: float) -> int:
    """Convert an RR interval in ms to the nearest 1/1024 s tick count."""
    return round(rr_ms * 1024 / 1000)


def make_frame(
    hr_bpm: int = 72,
    rr_ms: list[float] | None = None,
    hr_uint16: bool = False,
    energy_kj: int | None = None,
    contact: bool | None = None,
) -> bytes:
    """Build a Heart Rate Measurement value with RR intervals given in ms."""
    ticks = [ms_to_ticks(v) for v in rr_ms] if rr_ms else None
    return build_measurement(hr_bpm, ticks, hr_uint16=hr_uint16, energy_kj=energy_kj, contact=contact)


def make_sample(
    rr_ms: list[float] | tuple[float, ...] = (),
    at: float = 0.0,
    hr_bpm: int = 72,
) -> Sample:
    return Sample(heart_rate=hr_bpm, rr_intervals_ms=tuple(float(v) for v in rr_ms), captured_at=float(at))


class FakeClock:
    """Manually driven monotonic clock (ms)."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = float(now)

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> float:
        self.now += ms
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# JSONL capture file helpers
# ---------------------------------------------------------------------------


def write_jsonl(path: Path, entries: list[dict]) -> Path:
    """Write a list of dicts as JSONL to the given path."""
    with open(path, "w") as f:
        for entry in entries:
            f.write(json.dumps(entry) + "\n")
    return path


def make_capture_entry(
    frame: bytes,
    elapsed_ms: float | None = None,
    timestamp: str = "2024-02-13T12:00:00Z",
    uuid: str = HR_MEASUREMENT_UUID,
) -> dict:
    """Create a single JSONL capture entry."""
    entry = {
        "timestamp": timestamp,
        "uuid": uuid,
        "hex_data": frame.hex(),
        "length": len(frame),
    }
    if elapsed_ms is not None:
        entry["elapsed_ms"] = elapsed_ms
    return entry


# ---------------------------------------------------------------------------
# Logging isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_hrvmon_logger():
    """The CLI reconfigures the ``hrvmon`` logger; undo it after each test."""
    log = logging.getLogger("hrvmon")
    yield
    for handler in list(log.handlers):
        log.removeHandler(handler)
        handler.close()
    log.setLevel(logging.NOTSET)
    log.propagate = True
