"""hrvmon: real-time heart rate variability from BLE heart rate sensors."""

__version__ = "0.1.0"
