"""Shared fixtures for the weatherstn test suite."""

import pytest

from weatherstn.domain.models import (
    AtmosphericReading,
    Observation,
    RainReading,
    WindReading,
)
from weatherstn.drivers.edge_bus import SharedEdgeBus
from weatherstn.drivers.sensors_sim import SimulatedADC, SimulatedChip, SimulatedEdgeDriver
from weatherstn.storage.sqlite_repo import SQLiteObservationStore


def make_observation(ts: int, base: float = 1.0, interval: int = 30) -> Observation:
    """Observation whose fields are all derived from ``base`` so rows are distinguishable."""
    return Observation(
        timestamp=ts,
        atmospheric=AtmosphericReading(temperature=base, humidity=base + 1, pressure=base + 2),
        wind=WindReading(speed=base + 3, direction=22.5, gust=base + 4),
        rain=RainReading(rainfall=base + 5),
        interval_seconds=interval,
    )


@pytest.fixture
def chip():
    return SimulatedChip(temperature=21.5, humidity=55.0, pressure=1009.0)


@pytest.fixture
def adc():
    return SimulatedADC()


@pytest.fixture
def edge_driver():
    return SimulatedEdgeDriver()


@pytest.fixture
def edge_bus(edge_driver):
    return SharedEdgeBus(edge_driver)


@pytest.fixture
def store(tmp_path):
    return SQLiteObservationStore(str(tmp_path / "observations.db"))
