from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar


R = TypeVar("R")


class SensorError(Exception):
    """Base class for sensor provider failures."""


class ConnectError(SensorError):
    """A provider could not be brought up. Fatal to startup."""


class SensorReadError(SensorError):
    """A single readings() call failed. The caller substitutes a zero reading."""


class SensorProvider(ABC, Generic[R]):
    """Domain-facing sensor abstraction.

    ``connect()`` must release anything it opened before raising
    ``ConnectError``. ``disconnect()`` must be safe to call on a provider that
    never connected.
    """

    @property
    @abstractmethod
    def sensor_id(self) -> str:
        ...

    @property
    @abstractmethod
    def connected(self) -> bool:
        ...

    @abstractmethod
    async def connect(self) -> None:
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        ...

    @abstractmethod
    async def readings(self) -> R:
        """Return the current reading. Raise SensorReadError on failure."""
        ...
