"""Replay captured frame logs through the HRV pipeline for offline analysis."""

from __future__ import annotations

import base64
import json
from datetime import datetime
from pathlib import Path

from hrvmon.analytics.pipeline import HRVPipeline
from hrvmon.config import PipelineSettings
from hrvmon.decoders.hr import HeartRateMeasurementDecoder


class ReplayClock:
    """Monotonic clock driven by capture timestamps instead of real time."""

    def __init__(self, start_ms: float = 0.0) -> None:
        self.now = float(start_ms)

    def __call__(self) -> float:
        return self.now

    def advance_to(self, t_ms: float) -> None:
        # Never run backwards, even if the capture does
        self.now = max(self.now, float(t_ms))


def _parse_iso(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None


def _entry_bytes(entry: dict) -> bytes | None:
    if "raw_bytes_b64" in entry:
        return base64.b64decode(entry["raw_bytes_b64"])
    if "hex_data" in entry:
        return bytes.fromhex(entry["hex_data"])
    return None


def replay_file(
    capture_path: str,
    output_path: str | None = None,
    verbose: bool = False,
    settings: PipelineSettings | None = None,
) -> list[dict]:
    """Replay a .jsonl capture file through the HRV pipeline.

    Entry times come from ``elapsed_ms`` when present, else from the ISO
    ``timestamp`` relative to the first entry, else one second per line.

    Args:
        capture_path: Path to the .jsonl capture file.
        output_path: Optional path to write per-frame results as JSON.
        verbose: If True, print skipped and malformed entries too.
        settings: Pipeline settings (window, thresholds, ...).

    Returns:
        One result dict per accepted frame.
    """
    path = Path(capture_path)
    if not path.exists():
        print(f"File not found: {capture_path}")
        return []

    clock = ReplayClock()
    pipeline = HRVPipeline(settings, clock=clock)
    pipeline.on_connect()

    records: list[dict] = []
    total = 0
    skipped = 0
    first_wall: datetime | None = None

    print(f"Replaying {path.name}...\n")

    with open(path) as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue

            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                if verbose:
                    print(f"  [line {line_num}] Invalid JSON, skipping")
                skipped += 1
                continue

            total += 1
            if not isinstance(entry, dict):
                if verbose:
                    print(f"  [line {line_num}] not a capture entry, skipping")
                skipped += 1
                continue

            uuid = entry.get("uuid")
            try:
                foreign = bool(uuid) and not HeartRateMeasurementDecoder.can_decode(uuid)
            except (AttributeError, TypeError, ValueError):
                foreign = True
            if foreign:
                if verbose:
                    print(f"  [line {line_num}] {str(uuid)[:12]}... (not a HR measurement, skipping)")
                skipped += 1
                continue

            try:
                raw = _entry_bytes(entry)
            except (TypeError, ValueError):
                raw = None
            if raw is None:
                if verbose:
                    print(f"  [line {line_num}] no frame data, skipping")
                skipped += 1
                continue

            try:
                if "elapsed_ms" in entry:
                    at = float(entry["elapsed_ms"])
                else:
                    wall = _parse_iso(entry.get("timestamp", ""))
                    if wall is not None:
                        start = first_wall if first_wall is not None else wall
                        at = (wall - start).total_seconds() * 1000.0
                        first_wall = start
                    else:
                        at = clock.now + 1000.0
            except (TypeError, ValueError):
                if verbose:
                    print(f"  [line {line_num}] unreadable time, skipping")
                skipped += 1
                continue
            clock.advance_to(at)

            result = pipeline.on_frame(raw)
            if result is None:
                if verbose:
                    print(f"  [line {line_num}] raw={raw.hex()} ({pipeline.last_error})")
                continue

            record = {"line": line_num, "timestamp": entry.get("timestamp"), **result.to_dict()}
            records.append(record)

            m = result.metrics
            print(
                f"  [{clock.now / 1000.0:8.1f}s] HR {result.sample.heart_rate:3d} bpm  "
                f"RMSSD {m.rmssd:6.1f}  SDNN {m.sdnn:6.1f}  "
                f"{result.interpretation.status.value}"
            )

    pipeline.on_disconnect()

    print(
        f"\nSummary: {total} entries, {len(records)} decoded, "
        f"{pipeline.decode_errors} malformed, {skipped} skipped"
    )
    final = pipeline.current_interpretation()
    print(f"Final state: {final.title} (severity {final.severity})")

    if output_path:
        with open(output_path, "w") as out:
            json.dump(records, out, indent=2)
        print(f"Output written to {output_path}")

    return records
