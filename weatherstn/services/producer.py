from __future__ import annotations
import logging
from typing import Callable, Optional, TypeVar

from ..core.periodic import PeriodicTask
from ..core.timeutil import epoch_seconds
from ..domain.interfaces import ObservationStore
from ..domain.models import AtmosphericReading, Observation, RainReading, WindReading
from ..sensors.base import SensorProvider
from ..storage.sqlite_repo import StorageError


logger = logging.getLogger(__name__)

R = TypeVar("R")


class SensorProducer(PeriodicTask):
    """Polls every provider once per interval and stores one observation row."""

    name = "producer"
    tick_on_start = True

    def __init__(
        self,
        atmospheric: SensorProvider[AtmosphericReading],
        wind: SensorProvider[WindReading],
        rain: SensorProvider[RainReading],
        store: ObservationStore,
        interval: float = 30,
        clock: Callable[[], int] = epoch_seconds,
    ) -> None:
        super().__init__(interval)
        self._atmospheric = atmospheric
        self._wind = wind
        self._rain = rain
        self._store = store
        self._clock = clock
        self.last_observation: Optional[Observation] = None

    async def _read(self, provider: SensorProvider[R], fallback: Callable[[], R]) -> R:
        try:
            return await provider.readings()
        except Exception as e:
            # One sensor offline must not stall the others
            logger.error("Sensor read FAILED (sensor=%s): %s", provider.sensor_id, e)
            return fallback()

    async def poll(self) -> Observation:
        atmospheric = await self._read(self._atmospheric, AtmosphericReading)
        wind = await self._read(self._wind, WindReading)
        rain = await self._read(self._rain, RainReading)

        return Observation(
            timestamp=self._clock(),
            atmospheric=atmospheric,
            wind=wind,
            rain=rain,
            interval_seconds=int(self.interval),
        )

    async def tick(self) -> None:
        observation = await self.poll()
        self.last_observation = observation
        logger.info(
            "Observation: temp=%.2f hum=%.2f pres=%.2f wind=%.2f dir=%.1f gust=%.2f rain=%.4f",
            observation.atmospheric.temperature,
            observation.atmospheric.humidity,
            observation.atmospheric.pressure,
            observation.wind.speed,
            observation.wind.direction,
            observation.wind.gust,
            observation.rain.rainfall,
        )

        try:
            await self._store.write(observation)
        except StorageError as e:
            # No retry queue: the row for this tick is lost
            logger.error("Dropping observation %d, store write failed: %s", observation.timestamp, e)
