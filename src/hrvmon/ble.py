"""BLE transport session for a standard heart rate sensor.

:class:`HeartRateSession` owns the bleak client.  It subscribes to the Heart
Rate Measurement characteristic and funnels every notification into a single
``asyncio.Queue``; a disconnect pushes a sentinel that ends :meth:`frames`.
Consumers only ever see raw frames and the end of the stream.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator

from bleak import BleakClient
from bleak.backends.characteristic import BleakGATTCharacteristic

from hrvmon.protocol import HR_MEASUREMENT_UUID

logger = logging.getLogger(__name__)

_DISCONNECTED = None


class HeartRateSession:
    """Async context manager streaming 0x2A37 notifications from one sensor."""

    def __init__(self, address: str, queue_size: int = 256) -> None:
        self.address = address
        self.frames_received = 0
        self.frames_dropped = 0
        self._queue: asyncio.Queue[bytes | None] = asyncio.Queue(maxsize=queue_size)
        self._loop: asyncio.AbstractEventLoop | None = None
        self._client: BleakClient | None = None
        self._disconnected = asyncio.Event()

    @property
    def is_connected(self) -> bool:
        return self._client is not None and self._client.is_connected

    async def __aenter__(self) -> "HeartRateSession":
        self._loop = asyncio.get_running_loop()
        self._client = BleakClient(self.address, disconnected_callback=self._on_disconnect)
        await self._client.connect()
        logger.info("Connected to %s", self.address)
        try:
            await self._client.start_notify(HR_MEASUREMENT_UUID, self._on_notification)
        except BaseException:
            # __aexit__ is not called when __aenter__ raises
            logger.warning("Subscribing to heart rate notifications on %s failed", self.address)
            await self._client.disconnect()
            self._signal_disconnect()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        client = self._client
        if client is None:
            return
        try:
            if client.is_connected:
                await client.stop_notify(HR_MEASUREMENT_UUID)
        except Exception as e:  # best-effort cleanup
            logger.debug("stop_notify failed: %s", e)
        await client.disconnect()
        self._signal_disconnect()

    def _on_notification(self, _char: BleakGATTCharacteristic, data: bytearray) -> None:
        self._put(bytes(data))

    def _on_disconnect(self, _client: BleakClient) -> None:
        logger.info("Sensor %s disconnected", self.address)
        self._signal_disconnect()

    def _signal_disconnect(self) -> None:
        if self._disconnected.is_set():
            return
        self._disconnected.set()
        self._put(_DISCONNECTED, force=True)

    def _put(self, item: bytes | None, force: bool = False) -> None:
        # bleak may call back from a backend thread
        if self._loop is not None and not self._in_loop():
            self._loop.call_soon_threadsafe(self._put_nowait, item, force)
        else:
            self._put_nowait(item, force)

    def _in_loop(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def _put_nowait(self, item: bytes | None, force: bool) -> None:
        if item is not _DISCONNECTED:
            self.frames_received += 1
        if self._queue.full():
            if not force:
                self.frames_dropped += 1
                logger.warning("Frame queue full; dropping notification")
                return
            self._queue.get_nowait()
            self.frames_dropped += 1
        self._queue.put_nowait(item)

    async def frames(self) -> AsyncIterator[bytes]:
        """Yield raw frames until the sensor disconnects."""
        while True:
            item = await self._queue.get()
            if item is _DISCONNECTED:
                return
            yield item

    async def wait_disconnected(self) -> None:
        await self._disconnected.wait()
