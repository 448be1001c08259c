"""Exception types raised by the hrvmon pipeline.

None of these are fatal: the pipeline reports them and keeps running.
"""

from __future__ import annotations


class HRVMonError(Exception):
    """Base class for hrvmon errors."""


class DecodeError(HRVMonError, ValueError):
    """A heart rate measurement frame is malformed or too short."""

    def __init__(self, message: str, frame: bytes = b"") -> None:
        super().__init__(message)
        self.frame = bytes(frame)

    def __str__(self) -> str:
        msg = super().__str__()
        if self.frame:
            return f"{msg} (frame={self.frame.hex()})"
        return msg


class ConfigurationError(HRVMonError, ValueError):
    """Invalid thresholds or pipeline settings."""
