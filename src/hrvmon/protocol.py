"""BLE Heart Rate Service constants and Heart Rate Measurement framing.

Heart Rate Measurement characteristic (0x2A37) value layout, per the
Bluetooth SIG Heart Rate Service (0x180D):

    [FLAGS: 1B] [HR: 1B or 2B LE] [ENERGY: 2B LE, optional] [RR: 2B LE ...]

- FLAGS bit 0: HR format (0 = uint8, 1 = uint16)
- FLAGS bit 1: sensor contact supported
- FLAGS bit 2: sensor contact detected
- FLAGS bit 3: energy expended present (kJ, uint16)
- FLAGS bit 4: RR intervals present (uint16 each, 1/1024 s units)
"""

from __future__ import annotations

import time
from enum import IntFlag

# ---------------------------------------------------------------------------
# BLE UUIDs
# ---------------------------------------------------------------------------
HR_SERVICE_SHORT_UUID = 0x180D
HR_MEASUREMENT_SHORT_UUID = 0x2A37

_SIG_BASE_SUFFIX = "-0000-1000-8000-00805f9b34fb"
HR_SERVICE_UUID = f"0000{HR_SERVICE_SHORT_UUID:04x}{_SIG_BASE_SUFFIX}"
HR_MEASUREMENT_UUID = f"0000{HR_MEASUREMENT_SHORT_UUID:04x}{_SIG_BASE_SUFFIX}"


# ---------------------------------------------------------------------------
# Measurement flags
# ---------------------------------------------------------------------------
class HRFlags(IntFlag):
    HR_UINT16 = 0x01
    CONTACT_SUPPORTED = 0x02
    CONTACT_DETECTED = 0x04
    ENERGY_EXPENDED = 0x08
    RR_PRESENT = 0x10


MIN_FRAME_SIZE = 2  # flags + uint8 HR
RR_TICKS_PER_SECOND = 1024


def expand_uuid(uuid: str | int) -> str:
    """Normalize a 16-bit or 128-bit UUID to the lowercase 128-bit form."""
    if isinstance(uuid, int):
        return f"0000{uuid:04x}{_SIG_BASE_SUFFIX}"
    text = uuid.strip().lower()
    if text.startswith("0x"):
        text = text[2:]
    if len(text) == 4:
        return f"0000{text}{_SIG_BASE_SUFFIX}"
    return text


def is_hr_measurement_uuid(uuid: str | int) -> bool:
    """Check if a UUID is the Heart Rate Measurement characteristic."""
    return expand_uuid(uuid) == HR_MEASUREMENT_UUID


def is_hr_service_uuid(uuid: str | int) -> bool:
    """Check if a UUID is the Heart Rate Service."""
    return expand_uuid(uuid) == HR_SERVICE_UUID


def rr_ticks_to_ms(ticks: int) -> float:
    """Convert a raw RR value (1/1024 s) to milliseconds."""
    return ticks * 1000.0 / RR_TICKS_PER_SECOND


def monotonic_ms() -> float:
    """Monotonic clock in milliseconds (immune to wall-clock adjustments)."""
    return time.monotonic() * 1000.0


def build_measurement(
    hr_bpm: int,
    rr_ticks: list[int] | None = None,
    hr_uint16: bool = False,
    energy_kj: int | None = None,
    contact: bool | None = None,
) -> bytes:
    """Build a Heart Rate Measurement value.

    The inverse of the decoder; used by replay fixtures and tests.
    """
    flags = HRFlags(0)
    if hr_uint16:
        flags |= HRFlags.HR_UINT16
    if contact is not None:
        flags |= HRFlags.CONTACT_SUPPORTED
        if contact:
            flags |= HRFlags.CONTACT_DETECTED
    if energy_kj is not None:
        flags |= HRFlags.ENERGY_EXPENDED
    if rr_ticks:
        flags |= HRFlags.RR_PRESENT

    buf = bytearray([int(flags)])
    if hr_uint16:
        buf += hr_bpm.to_bytes(2, "little")
    else:
        buf.append(hr_bpm & 0xFF)
    if energy_kj is not None:
        buf += energy_kj.to_bytes(2, "little")
    for ticks in rr_ticks or []:
        buf += ticks.to_bytes(2, "little")
    return bytes(buf)
