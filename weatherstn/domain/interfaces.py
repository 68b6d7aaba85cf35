from __future__ import annotations
from typing import Callable, Optional, Protocol, Tuple, runtime_checkable
from .models import Observation


EdgeCallback = Callable[[], None]


@runtime_checkable
class ChipDriver(Protocol):
    """Combined temperature/humidity/pressure chip (e.g. BME280 on I2C)."""

    def open(self) -> None:
        ...

    def read(self) -> Tuple[float, float, float]:
        """Return (temperature, humidity, pressure)."""
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class ADCDriver(Protocol):
    """Multi-channel ADC (e.g. MCP3008 on SPI)."""

    def open(self) -> None:
        ...

    def read(self, channel: int) -> int:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class EdgeDriver(Protocol):
    """GPIO rising-edge notifications. Callbacks may run on a driver thread."""

    def open(self) -> None:
        ...

    def watch(self, pin: int, callback: EdgeCallback) -> None:
        ...

    def unwatch(self, pin: int) -> None:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class ObservationStore(Protocol):
    async def init(self) -> None:
        ...

    async def write(self, observation: Observation) -> None:
        ...

    async def read_unpublished(self, limit: Optional[int] = None) -> list[Observation]:
        ...

    async def mark_published(
        self, min_timestamp: int, max_timestamp: int, up_to_id: Optional[int] = None
    ) -> None:
        ...

    async def count_unpublished(self) -> int:
        ...
