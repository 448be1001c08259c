"""Subscribe to a heart rate sensor and log raw measurement frames to JSONL."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
import json
from pathlib import Path

from hrvmon.ble import HeartRateSession
from hrvmon.protocol import HR_MEASUREMENT_UUID, monotonic_ms
from hrvmon.scanner import find_hr_sensor

LOGS_DIR = Path.cwd() / "logs"


def capture_record(data: bytes, elapsed_ms: float) -> dict:
    """Build one JSONL capture entry for a raw frame."""
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "elapsed_ms": round(elapsed_ms, 3),
        "uuid": HR_MEASUREMENT_UUID,
        "hex_data": bytes(data).hex(),
        "length": len(data),
    }


async def capture(
    address: str | None = None,
    duration: float | None = None,
    output: str | None = None,
) -> Path | None:
    """Record every Heart Rate Measurement notification to a JSONL file.

    Args:
        address: BLE address. If None, scans for a heart rate sensor.
        duration: Capture duration in seconds. None = run until disconnect
            or Ctrl+C.
        output: Output file path. If None, auto-generates in ./logs/.

    Returns:
        The capture path, or None if no sensor was found.
    """
    if address is None:
        device = await find_hr_sensor()
        if device is None:
            print("No heart rate sensor found.")
            return None
        address = device.address

    if output is None:
        LOGS_DIR.mkdir(parents=True, exist_ok=True)
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        output = str(LOGS_DIR / f"capture_{ts}.jsonl")

    outpath = Path(output)
    outpath.parent.mkdir(parents=True, exist_ok=True)
    count = 0

    print(f"Connecting to {address}...")

    async with HeartRateSession(address) as session:
        start = monotonic_ms()
        print(f"Capturing heart rate frames -> {outpath}")
        print("Press Ctrl+C to stop.\n")

        async def _record() -> None:
            nonlocal count
            with open(outpath, "a") as f:
                async for data in session.frames():
                    record = capture_record(data, monotonic_ms() - start)
                    f.write(json.dumps(record) + "\n")
                    f.flush()
                    count += 1
                    print(f"  [{record['timestamp']}] len={len(data)} {data.hex()}")

        try:
            if duration:
                await asyncio.wait_for(_record(), timeout=duration)
            else:
                await _record()
        except (asyncio.TimeoutError, asyncio.CancelledError):
            pass

    print(f"\nCapture complete. {count} frames -> {outpath}")
    return outpath
