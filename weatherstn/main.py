from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from .core.config import settings
from .core.log import configure_logging

from .api.routes import router as api_router
import weatherstn.api.routes as routes_module

from .domain.models import EndpointConfig
from .drivers.edge_bus import SharedEdgeBus
from .drivers.sensors_sim import SimulatedADC, SimulatedChip, SimulatedEdgeDriver
from .sensors.atmospheric import AtmosphericSensorProvider
from .sensors.base import ConnectError, SensorProvider
from .sensors.rain import RainSensorProvider
from .sensors.wind import WindSensorProvider
from .services.producer import SensorProducer
from .services.publisher import Publisher
from .storage.sqlite_repo import SQLiteObservationStore


logger = logging.getLogger(__name__)


# --- Singletons ---
sim_chip = SimulatedChip(amplitude=4.0, noise=0.05)
sim_adc = SimulatedADC({settings.vane_channel: 120})  # ~0.4V, north
sim_edges = SimulatedEdgeDriver()
edge_bus = SharedEdgeBus(sim_edges)

atmospheric = AtmosphericSensorProvider(sim_chip)
wind = WindSensorProvider(
    edge_bus,
    sim_adc,
    anemometer_pin=settings.anemometer_pin,
    vane_channel=settings.vane_channel,
    interval=settings.anemometer_interval_seconds,
    radius_cm=settings.anemometer_radius_cm,
    factor=settings.anemometer_factor,
    adc_max=settings.adc_max,
    vref=settings.adc_vref,
)
rain = RainSensorProvider(
    edge_bus,
    pin=settings.rain_pin,
    interval=settings.rain_interval_seconds,
    mm_per_tip=settings.rain_mm_per_tip,
)
providers: list[SensorProvider] = [atmospheric, wind, rain]

store = SQLiteObservationStore(settings.sqlite_path)
endpoint = EndpointConfig(
    host=settings.endpoint_host,
    method=settings.endpoint_method,
    path=settings.endpoint_path,
)
http_client: httpx.AsyncClient | None = None
producer = SensorProducer(
    atmospheric, wind, rain, store, interval=settings.poll_interval_seconds
)
publisher: Publisher | None = None


def get_producer() -> SensorProducer:
    return producer


def get_publisher() -> Publisher:
    assert publisher is not None
    return publisher


def get_store() -> SQLiteObservationStore:
    return store


async def connect_providers() -> None:
    """Connect every provider; on failure disconnect the ones already up and re-raise."""
    connected: list[SensorProvider] = []
    try:
        for p in providers:
            await p.connect()
            connected.append(p)
    except ConnectError:
        for p in reversed(connected):
            await p.disconnect()
        raise


async def disconnect_providers() -> None:
    for p in providers:
        try:
            await p.disconnect()
        except Exception:
            logger.exception("Failed to disconnect %s", p.sensor_id)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Starting %s (sensor_mode=%s)", settings.app_name, settings.sensor_mode)
    if settings.sensor_mode.lower() != "sim":
        raise RuntimeError(f"Unsupported sensor_mode {settings.sensor_mode!r}, only 'sim' is available")

    await store.init()
    await connect_providers()

    global http_client, publisher
    http_client = httpx.AsyncClient(timeout=settings.publish_timeout_seconds)
    publisher = Publisher(
        store, endpoint, client=http_client,
        interval=settings.publish_interval_seconds,
        timeout=settings.publish_timeout_seconds,
    )

    await producer.start()
    await publisher.start()

    try:
        yield
    finally:
        # Loops first, so nothing reads a provider while it is torn down
        await producer.stop()
        await publisher.stop()
        await disconnect_providers()
        await http_client.aclose()

        logger.info("Shutdown complete")


app = FastAPI(title=settings.app_name, lifespan=lifespan)

# Make the dependency functions in routes resolve to the real ones
app.dependency_overrides[routes_module.get_producer] = get_producer
app.dependency_overrides[routes_module.get_publisher] = get_publisher
app.dependency_overrides[routes_module.get_store] = get_store
app.dependency_overrides[routes_module.get_sim_chip] = lambda: sim_chip
app.dependency_overrides[routes_module.get_sim_adc] = lambda: sim_adc
app.dependency_overrides[routes_module.get_sim_edges] = lambda: sim_edges

app.include_router(api_router, prefix="/api")
