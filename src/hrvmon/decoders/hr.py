"""Heart Rate Measurement (0x2A37) decoder.

Turns one raw BLE notification into an immutable :class:`Sample`.  RR
intervals arrive as uint16 LE values in 1/1024 s units and are converted to
milliseconds.  A trailing odd byte after the RR block is ignored.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from hrvmon.errors import DecodeError
from hrvmon.protocol import (
    MIN_FRAME_SIZE,
    HRFlags,
    is_hr_measurement_uuid,
    monotonic_ms,
    rr_ticks_to_ms,
)


@dataclass(frozen=True)
class Sample:
    """One decoded heart rate measurement."""

    heart_rate: int
    rr_intervals_ms: tuple[float, ...]
    captured_at: float  # monotonic ms
    sensor_contact: bool | None = None
    energy_expended_kj: int | None = None

    def __repr__(self) -> str:
        rr = ""
        if self.rr_intervals_ms:
            rr = ", rr=[" + ", ".join(f"{v:.0f}" for v in self.rr_intervals_ms) + "]"
        return f"Sample(hr={self.heart_rate}bpm{rr}, t={self.captured_at:.0f}ms)"


class HeartRateMeasurementDecoder:
    """Decode standard BLE Heart Rate Measurement values."""

    @staticmethod
    def can_decode(uuid: str | int) -> bool:
        """Check if notifications from this characteristic carry HR data."""
        return is_hr_measurement_uuid(uuid)

    @staticmethod
    def decode(frame: bytes | bytearray, captured_at: float | None = None) -> Sample:
        """Decode a Heart Rate Measurement value into a Sample.

        Flag bit 3 (energy expended) is honoured on purpose: its uint16 field
        sits between the heart rate and the RR intervals, as the Heart Rate
        Service defines it, so RR data starts two bytes later on such frames.
        Readers that ignore bit 3 and take RR data straight after the heart
        rate decode these frames differently.

        Args:
            frame: Raw characteristic value.
            captured_at: Monotonic timestamp (ms).  Defaults to now.

        Raises:
            DecodeError: if the frame is shorter than its flags require.
        """
        data = bytes(frame)
        if captured_at is None:
            captured_at = monotonic_ms()

        if len(data) < MIN_FRAME_SIZE:
            raise DecodeError(
                f"frame too short: {len(data)} byte(s), need at least {MIN_FRAME_SIZE}",
                data,
            )

        flags = HRFlags(data[0] & 0x1F)
        offset = 1

        if flags & HRFlags.HR_UINT16:
            if len(data) < offset + 2:
                raise DecodeError("frame too short for 16-bit heart rate", data)
            hr_value = struct.unpack_from("<H", data, offset)[0]
            offset += 2
        else:
            hr_value = data[offset]
            offset += 1

        sensor_contact = None
        if flags & HRFlags.CONTACT_SUPPORTED:
            sensor_contact = bool(flags & HRFlags.CONTACT_DETECTED)

        energy_expended = None
        if flags & HRFlags.ENERGY_EXPENDED:
            if len(data) < offset + 2:
                raise DecodeError("frame too short for energy expended field", data)
            energy_expended = struct.unpack_from("<H", data, offset)[0]
            offset += 2

        rr_intervals: list[float] = []
        if flags & HRFlags.RR_PRESENT:
            while offset + 1 < len(data):
                rr_raw = struct.unpack_from("<H", data, offset)[0]
                rr_intervals.append(rr_ticks_to_ms(rr_raw))
                offset += 2

        return Sample(
            heart_rate=hr_value,
            rr_intervals_ms=tuple(rr_intervals),
            captured_at=float(captured_at),
            sensor_contact=sensor_contact,
            energy_expended_kj=energy_expended,
        )
