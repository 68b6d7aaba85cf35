from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from ..domain.models import Observation


class AtmosphericsOut(BaseModel):
    temperature: float
    humidity: float
    pressure: float


class WindOut(BaseModel):
    speed: float
    direction: float
    gust: float


class RainOut(BaseModel):
    rainfall: float


class ObservationPayload(BaseModel):
    """One element of the JSON array sent to the collector."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: int
    atmospherics: AtmosphericsOut
    wind: WindOut
    rain: RainOut
    interval_seconds: int = Field(alias="intervalSeconds")

    @classmethod
    def from_observation(cls, o: Observation) -> "ObservationPayload":
        return cls(
            timestamp=o.timestamp,
            atmospherics=AtmosphericsOut(
                temperature=o.atmospheric.temperature,
                humidity=o.atmospheric.humidity,
                pressure=o.atmospheric.pressure,
            ),
            wind=WindOut(speed=o.wind.speed, direction=o.wind.direction, gust=o.wind.gust),
            rain=RainOut(rainfall=o.rain.rainfall),
            interval_seconds=o.interval_seconds,
        )


def observations_to_wire(rows: List[Observation]) -> list[dict]:
    return [ObservationPayload.from_observation(o).model_dump(by_alias=True) for o in rows]


class SimPulsesRequest(BaseModel):
    pin: int = Field(ge=0)
    count: int = Field(default=1, ge=1, le=10_000)


class SimVaneRequest(BaseModel):
    raw: int = Field(ge=0)
    channel: Optional[int] = None


class SimAtmosphericRequest(BaseModel):
    temperature: float
    humidity: float = Field(ge=0, le=100)
    pressure: float = Field(gt=0)
