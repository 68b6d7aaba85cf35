from __future__ import annotations

import asyncio
import logging

from .accumulator import (
    DEFAULT_ANEMOMETER_FACTOR,
    DEFAULT_ANEMOMETER_RADIUS_CM,
    WindSpeedAccumulator,
)
from .base import ConnectError, SensorProvider, SensorReadError
from ..domain.interfaces import ADCDriver
from ..domain.models import UNKNOWN_DIRECTION, WindReading
from ..domain.wind_direction import direction_for_voltage, raw_to_voltage
from ..drivers.edge_bus import SharedEdgeBus

logger = logging.getLogger(__name__)


class WindSensorProvider(SensorProvider[WindReading]):
    """Anemometer (edge counted, windowed) plus wind vane (ADC, instantaneous)."""

    def __init__(
        self,
        edges: SharedEdgeBus,
        adc: ADCDriver,
        anemometer_pin: int,
        vane_channel: int,
        interval: float,
        radius_cm: float = DEFAULT_ANEMOMETER_RADIUS_CM,
        factor: float = DEFAULT_ANEMOMETER_FACTOR,
        adc_max: int = 1023,
        vref: float = 3.3,
        sensor_id: str = "wind",
    ) -> None:
        self._edges = edges
        self._adc = adc
        self._pin = anemometer_pin
        self._channel = vane_channel
        self._interval = interval
        self._radius_cm = radius_cm
        self._factor = factor
        self._adc_max = adc_max
        self._vref = vref
        self._sensor_id = sensor_id
        self._accumulator: WindSpeedAccumulator | None = None

    @property
    def sensor_id(self) -> str:
        return self._sensor_id

    @property
    def connected(self) -> bool:
        return self._accumulator is not None

    @property
    def accumulator(self) -> WindSpeedAccumulator | None:
        return self._accumulator

    async def connect(self) -> None:
        if self._accumulator is not None:
            return

        accumulator = WindSpeedAccumulator(
            self._interval, radius_cm=self._radius_cm, factor=self._factor
        )

        try:
            self._edges.acquire()
        except Exception as e:
            raise ConnectError(f"{self._sensor_id}: failed to open edge driver: {e}") from e

        try:
            self._edges.watch(self._pin, accumulator.on_edge)
        except Exception as e:
            self._edges.release()
            raise ConnectError(f"{self._sensor_id}: failed to watch pin {self._pin}: {e}") from e

        try:
            self._adc.open()
        except Exception as e:
            self._unwatch()
            self._edges.release()
            raise ConnectError(f"{self._sensor_id}: failed to open ADC: {e}") from e

        await accumulator.start()
        self._accumulator = accumulator
        logger.info(
            "Wind sensor connected (pin=%d channel=%d interval=%ss)",
            self._pin, self._channel, self._interval,
        )

    async def disconnect(self) -> None:
        accumulator = self._accumulator
        if accumulator is None:
            logger.debug("Attempted to disconnect not connected provider %s", self._sensor_id)
            return

        # The loop must be gone before the watch is removed
        await accumulator.stop()
        self._unwatch()
        try:
            self._adc.close()
        except Exception:
            logger.error("ADC failed to close (sensor=%s)", self._sensor_id, exc_info=True)
        self._edges.release()
        self._accumulator = None

    def _unwatch(self) -> None:
        try:
            self._edges.unwatch(self._pin)
        except Exception:
            logger.error("Failed to unwatch pin %d", self._pin, exc_info=True)

    async def readings(self) -> WindReading:
        accumulator = self._accumulator
        if accumulator is None:
            raise SensorReadError(f"{self._sensor_id}: not connected")

        loop = asyncio.get_running_loop()
        try:
            raw = await loop.run_in_executor(None, self._adc.read, self._channel)
        except Exception as e:
            raise SensorReadError(f"{self._sensor_id}: vane read failed: {e}") from e

        speed, gust = accumulator.readings()

        volts = raw_to_voltage(raw, self._adc_max, self._vref)
        direction = direction_for_voltage(volts)
        if direction == UNKNOWN_DIRECTION:
            logger.warning(
                "Vane voltage %.1fV (raw=%d) has no corresponding heading", volts, raw
            )

        return WindReading(speed=speed, direction=direction, gust=gust)
