"""Live HRV monitoring from a standard BLE heart rate sensor.

Connects to a sensor advertising the Heart Rate Service, feeds every
Heart Rate Measurement notification through :class:`HRVPipeline`, and prints
the heart rate, RR intervals, HRV metrics and interpretation as they update.
"""

from __future__ import annotations

import asyncio
from datetime import datetime

from hrvmon.analytics.pipeline import HRVPipeline, PipelineResult
from hrvmon.ble import HeartRateSession
from hrvmon.config import PipelineSettings
from hrvmon.scanner import find_hr_sensor


def format_result(result: PipelineResult) -> str:
    """One status line for a pipeline result."""
    now = datetime.now().strftime("%H:%M:%S")
    sample = result.sample
    line = f"[{now}] HR: {sample.heart_rate} bpm"
    if sample.rr_intervals_ms:
        rr_str = ", ".join(f"{v:.0f}" for v in sample.rr_intervals_ms)
        line += f"  RR: [{rr_str}] ms"
    m = result.metrics
    if not m.insufficient:
        line += (
            f"  RMSSD: {m.rmssd:.1f} ms ({result.trends.rmssd.value})"
            f"  SDNN: {m.sdnn:.1f} ms"
        )
    interp = result.interpretation
    line += f"  -> {interp.title} [{interp.status.value}, severity {interp.severity}]"
    if sample.sensor_contact is False:
        line += "  [NO CONTACT]"
    return line


async def monitor(
    address: str | None = None,
    settings: PipelineSettings | None = None,
) -> HRVPipeline | None:
    """Connect to a heart rate sensor and stream live HRV until disconnect.

    Returns the pipeline so callers can inspect its final state, or None if
    no sensor was found.
    """
    if address is None:
        device = await find_hr_sensor()
        if device is None:
            print("No heart rate sensor found.")
            return None
        address = device.address

    pipeline = HRVPipeline(settings)
    print(f"Connecting to {address}...")

    # A fresh connection always starts from empty state
    pipeline.on_connect()
    async with HeartRateSession(address) as session:
        print("Connected. Streaming HRV (Ctrl+C to stop):\n")

        def _on_result(result: PipelineResult) -> None:
            print(format_result(result), flush=True)

        try:
            await pipeline.run(session.frames(), on_result=_on_result)
        except asyncio.CancelledError:
            pass

    print(
        f"\nSession ended: {pipeline.samples_processed} samples, "
        f"{pipeline.decode_errors} malformed frame(s)."
    )
    last = pipeline.current_interpretation()
    print(f"Last state: {last.title} (severity {last.severity})")
    return pipeline
