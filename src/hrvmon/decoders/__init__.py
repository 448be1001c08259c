"""Decoders for BLE Heart Rate Service notifications."""

from hrvmon.decoders.hr import HeartRateMeasurementDecoder, Sample

__all__ = [
    "HeartRateMeasurementDecoder",
    "Sample",
]
