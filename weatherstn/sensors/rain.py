from __future__ import annotations

import logging

from .accumulator import DEFAULT_MM_PER_TIP, RainAccumulator
from .base import ConnectError, SensorProvider, SensorReadError
from ..domain.models import RainReading
from ..drivers.edge_bus import SharedEdgeBus

logger = logging.getLogger(__name__)


class RainSensorProvider(SensorProvider[RainReading]):
    """Tipping-bucket rain gauge counted on a GPIO rising edge."""

    def __init__(
        self,
        edges: SharedEdgeBus,
        pin: int,
        interval: float,
        mm_per_tip: float = DEFAULT_MM_PER_TIP,
        sensor_id: str = "rain",
    ) -> None:
        self._edges = edges
        self._pin = pin
        self._interval = interval
        self._mm_per_tip = mm_per_tip
        self._sensor_id = sensor_id
        self._accumulator: RainAccumulator | None = None

    @property
    def sensor_id(self) -> str:
        return self._sensor_id

    @property
    def connected(self) -> bool:
        return self._accumulator is not None

    @property
    def accumulator(self) -> RainAccumulator | None:
        return self._accumulator

    async def connect(self) -> None:
        if self._accumulator is not None:
            return

        accumulator = RainAccumulator(self._interval, mm_per_tip=self._mm_per_tip)

        try:
            self._edges.acquire()
        except Exception as e:
            raise ConnectError(f"{self._sensor_id}: failed to open edge driver: {e}") from e

        try:
            self._edges.watch(self._pin, accumulator.on_edge)
        except Exception as e:
            self._edges.release()
            raise ConnectError(f"{self._sensor_id}: failed to watch pin {self._pin}: {e}") from e

        await accumulator.start()
        self._accumulator = accumulator
        logger.info(
            "Rain sensor connected (pin=%d interval=%ss mm_per_tip=%s)",
            self._pin, self._interval, self._mm_per_tip,
        )

    async def disconnect(self) -> None:
        accumulator = self._accumulator
        if accumulator is None:
            logger.debug("Attempted to disconnect not connected provider %s", self._sensor_id)
            return

        # The loop must be gone before the watch is removed
        await accumulator.stop()
        try:
            self._edges.unwatch(self._pin)
        except Exception:
            logger.error("Failed to unwatch pin %d", self._pin, exc_info=True)
        self._edges.release()
        self._accumulator = None

    async def readings(self) -> RainReading:
        accumulator = self._accumulator
        if accumulator is None:
            raise SensorReadError(f"{self._sensor_id}: not connected")
        return RainReading(rainfall=accumulator.readings())
