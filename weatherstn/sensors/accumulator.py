from __future__ import annotations

import logging
import math
from threading import Lock
from typing import Tuple

from ..core.periodic import PeriodicTask

logger = logging.getLogger(__name__)


DEFAULT_MM_PER_TIP = 0.2794
DEFAULT_ANEMOMETER_RADIUS_CM = 9.0
DEFAULT_ANEMOMETER_FACTOR = 1.18
EDGES_PER_ROTATION = 2


class PulseWindowAccumulator(PeriodicTask):
    """Counts edges over fixed windows and folds each window into an aggregate.

    ``_pulse_lock`` guards the edge counter, which is hit from the driver's
    callback thread and zeroed every window. ``_agg_lock`` guards the folded
    aggregate, which ``readings()`` drains at the poll cadence. The two locks
    are never held together.
    """

    name = "accumulator"

    def __init__(self, interval: float) -> None:
        super().__init__(interval)
        self._pulse_lock = Lock()
        self._pulses = 0
        self._agg_lock = Lock()

    def on_edge(self) -> None:
        with self._pulse_lock:
            self._pulses += 1

    def roll_window(self) -> int:
        """Close the current window and fold its pulses. Returns the pulse count."""
        with self._pulse_lock:
            pulses = self._pulses
            self._pulses = 0
        self._fold(pulses)
        return pulses

    async def tick(self) -> None:
        self.roll_window()

    def _fold(self, pulses: int) -> None:
        raise NotImplementedError


class RainAccumulator(PulseWindowAccumulator):
    name = "rain_accumulator"

    def __init__(self, interval: float, mm_per_tip: float = DEFAULT_MM_PER_TIP) -> None:
        super().__init__(interval)
        self._mm_per_tip = float(mm_per_tip)
        self._total_mm = 0.0

    def _fold(self, pulses: int) -> None:
        rainfall = pulses * self._mm_per_tip
        with self._agg_lock:
            self._total_mm += rainfall
        if pulses:
            logger.debug("rain window: tips=%d rainfall=%.4fmm", pulses, rainfall)

    def readings(self) -> float:
        with self._agg_lock:
            total = self._total_mm
            self._total_mm = 0.0
        return total


class WindSpeedAccumulator(PulseWindowAccumulator):
    name = "wind_accumulator"

    def __init__(
        self,
        interval: float,
        radius_cm: float = DEFAULT_ANEMOMETER_RADIUS_CM,
        factor: float = DEFAULT_ANEMOMETER_FACTOR,
    ) -> None:
        super().__init__(interval)
        self._circumference_cm = 2 * math.pi * float(radius_cm)
        self._factor = float(factor)
        self._speed_sum = 0.0
        self._samples = 0
        self._gust = 0.0

    def speed_for(self, pulses: int) -> float:
        """km/h for ``pulses`` edges seen over one window."""
        rotations = pulses / EDGES_PER_ROTATION
        distance_km = (self._circumference_cm * rotations) / 100000
        return (distance_km / self._interval) * 3600 * self._factor

    def _fold(self, pulses: int) -> None:
        speed = self.speed_for(pulses)
        with self._agg_lock:
            self._speed_sum += speed
            self._samples += 1
            if speed > self._gust:
                self._gust = speed
        if pulses:
            logger.debug("wind window: edges=%d speed=%.3fkm/h", pulses, speed)

    def readings(self) -> Tuple[float, float]:
        """Return (average speed, gust) and start a fresh aggregate."""
        with self._agg_lock:
            speed = self._speed_sum / self._samples if self._samples > 0 else 0.0
            gust = self._gust
            self._speed_sum = 0.0
            self._samples = 0
            self._gust = 0.0
        return speed, gust
