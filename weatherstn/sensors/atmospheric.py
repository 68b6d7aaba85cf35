from __future__ import annotations

import asyncio
import logging

from .base import ConnectError, SensorProvider, SensorReadError
from ..domain.interfaces import ChipDriver
from ..domain.models import AtmosphericReading

logger = logging.getLogger(__name__)


class AtmosphericSensorProvider(SensorProvider[AtmosphericReading]):
    """Temperature, humidity and pressure straight from the chip. No windowing."""

    def __init__(self, chip: ChipDriver, sensor_id: str = "atmospheric") -> None:
        self._chip = chip
        self._sensor_id = sensor_id
        self._connected = False

    @property
    def sensor_id(self) -> str:
        return self._sensor_id

    @property
    def connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        if self._connected:
            return

        try:
            self._chip.open()
        except Exception as e:
            raise ConnectError(f"{self._sensor_id}: failed to open chip: {e}") from e

        # Check that a read succeeds before declaring the sensor usable
        try:
            self._chip.read()
        except Exception as e:
            self._close_chip()
            raise ConnectError(f"{self._sensor_id}: test read failed: {e}") from e

        self._connected = True
        logger.info("Atmospheric sensor connected (sensor=%s)", self._sensor_id)

    async def disconnect(self) -> None:
        if not self._connected:
            logger.debug("Attempted to disconnect not connected provider %s", self._sensor_id)
            return
        self._close_chip()
        self._connected = False

    def _close_chip(self) -> None:
        try:
            self._chip.close()
        except Exception:
            logger.error("Chip failed to close (sensor=%s)", self._sensor_id, exc_info=True)

    async def readings(self) -> AtmosphericReading:
        if not self._connected:
            raise SensorReadError(f"{self._sensor_id}: not connected")

        loop = asyncio.get_running_loop()
        try:
            temperature, humidity, pressure = await loop.run_in_executor(None, self._chip.read)
        except Exception as e:
            raise SensorReadError(f"{self._sensor_id}: chip read failed: {e}") from e

        return AtmosphericReading(
            temperature=float(temperature),
            humidity=float(humidity),
            pressure=float(pressure),
        )
