from __future__ import annotations
import logging
import math
import random
import time
from threading import Lock
from typing import Dict, Tuple

from ..domain.interfaces import EdgeCallback

logger = logging.getLogger(__name__)


class SimulatedChip:
    """Stands in for a BME280. Temperature drifts on a slow sine."""

    def __init__(
        self,
        temperature: float = 18.0,
        humidity: float = 60.0,
        pressure: float = 1013.25,
        amplitude: float = 0.0,
        period_s: float = 86400.0,
        noise: float = 0.0,
    ) -> None:
        self._lock = Lock()
        self._temperature = temperature
        self._humidity = humidity
        self._pressure = pressure
        self._amplitude = amplitude
        self._period_s = period_s
        self._noise = noise
        self._t0 = time.monotonic()
        self.is_open = False
        self.fail_open = False
        self.fail_reads = False

    def set_values(self, temperature: float, humidity: float, pressure: float) -> None:
        with self._lock:
            self._temperature = float(temperature)
            self._humidity = float(humidity)
            self._pressure = float(pressure)

    def open(self) -> None:
        if self.fail_open:
            raise OSError("Simulated chip not responding")
        self.is_open = True

    def close(self) -> None:
        self.is_open = False

    def read(self) -> Tuple[float, float, float]:
        if not self.is_open:
            raise OSError("Simulated chip not open")
        if self.fail_reads:
            raise OSError("Simulated chip read failure")

        with self._lock:
            temperature, humidity, pressure = self._temperature, self._humidity, self._pressure

        if self._amplitude:
            t = time.monotonic() - self._t0
            temperature += self._amplitude * math.sin(2 * math.pi * t / max(self._period_s, 1.0))
        if self._noise > 0:
            temperature += random.uniform(-self._noise, self._noise)
        return temperature, humidity, pressure


class SimulatedADC:
    """Stands in for an MCP3008. Channels return whatever was last set."""

    def __init__(self, values: Dict[int, int] | None = None) -> None:
        self._lock = Lock()
        self._values: Dict[int, int] = dict(values or {})
        self.is_open = False
        self.fail_open = False
        self.fail_reads = False

    def set_value(self, channel: int, raw: int) -> None:
        with self._lock:
            self._values[channel] = int(raw)

    def open(self) -> None:
        if self.fail_open:
            raise OSError("Simulated ADC not responding")
        self.is_open = True

    def close(self) -> None:
        self.is_open = False

    def read(self, channel: int) -> int:
        if not self.is_open:
            raise OSError("Simulated ADC not open")
        if self.fail_reads:
            raise OSError("Simulated ADC read failure")
        with self._lock:
            return self._values.get(channel, 0)


class SimulatedEdgeDriver:
    """GPIO edge driver whose edges are fired by hand with ``pulse()``."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._callbacks: Dict[int, EdgeCallback] = {}
        self.open_count = 0
        self.close_count = 0
        self.fail_open = False
        self.fail_watch = False

    @property
    def is_open(self) -> bool:
        return self.open_count > self.close_count

    def watched_pins(self) -> list[int]:
        with self._lock:
            return sorted(self._callbacks)

    def open(self) -> None:
        if self.fail_open:
            raise OSError("Simulated GPIO unavailable")
        self.open_count += 1

    def close(self) -> None:
        if not self.is_open:
            raise OSError("Simulated GPIO already closed")
        self.close_count += 1

    def watch(self, pin: int, callback: EdgeCallback) -> None:
        if self.fail_watch:
            raise OSError(f"Simulated GPIO cannot watch pin {pin}")
        with self._lock:
            self._callbacks[pin] = callback

    def unwatch(self, pin: int) -> None:
        with self._lock:
            self._callbacks.pop(pin, None)

    def pulse(self, pin: int, count: int = 1) -> int:
        """Fire ``count`` rising edges on ``pin``. Returns edges delivered."""
        with self._lock:
            callback = self._callbacks.get(pin)
        if callback is None:
            logger.debug("Edge on unwatched pin %d dropped", pin)
            return 0
        for _ in range(count):
            callback()
        return count
