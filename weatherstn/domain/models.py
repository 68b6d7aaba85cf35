from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional


UNKNOWN_DIRECTION = -1.0


@dataclass(frozen=True)
class AtmosphericReading:
    temperature: float = 0.0
    humidity: float = 0.0
    pressure: float = 0.0


@dataclass(frozen=True)
class WindReading:
    speed: float = 0.0      # km/h, window average
    direction: float = 0.0  # degrees, UNKNOWN_DIRECTION if the vane is unmapped
    gust: float = 0.0       # km/h, window max


@dataclass(frozen=True)
class RainReading:
    rainfall: float = 0.0  # mm over the window


@dataclass(frozen=True)
class Observation:
    timestamp: int  # unix seconds
    atmospheric: AtmosphericReading = field(default_factory=AtmosphericReading)
    wind: WindReading = field(default_factory=WindReading)
    rain: RainReading = field(default_factory=RainReading)
    interval_seconds: int = 0
    published: bool = False
    id: Optional[int] = None  # store row id, assigned on read


@dataclass(frozen=True)
class EndpointConfig:
    host: str
    method: str = "PUT"
    path: str = "observations"

    @property
    def url(self) -> str:
        return f"https://{self.host}/{self.path.lstrip('/')}"
