from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ..core.config import settings
from ..core.timeutil import now_utc
from ..drivers.sensors_sim import SimulatedADC, SimulatedChip, SimulatedEdgeDriver
from ..services.producer import SensorProducer
from ..services.publisher import Publisher
from ..storage.sqlite_repo import SQLiteObservationStore, StorageError
from .schemas import (
    ObservationPayload,
    SimAtmosphericRequest,
    SimPulsesRequest,
    SimVaneRequest,
    observations_to_wire,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Dependency getters ---
# main.py points these at the real objects via app.dependency_overrides.
def get_producer() -> SensorProducer:  # overridden in main
    raise RuntimeError("Producer dependency not configured")

def get_publisher() -> Publisher:  # overridden in main
    raise RuntimeError("Publisher dependency not configured")

def get_store() -> SQLiteObservationStore:  # overridden in main
    raise RuntimeError("Store dependency not configured")

def get_sim_chip() -> SimulatedChip:  # overridden in main
    raise RuntimeError("Simulated chip dependency not configured")

def get_sim_adc() -> SimulatedADC:  # overridden in main
    raise RuntimeError("Simulated ADC dependency not configured")

def get_sim_edges() -> SimulatedEdgeDriver:  # overridden in main
    raise RuntimeError("Simulated edge driver dependency not configured")


@router.get("/live")
async def get_live(
    producer: SensorProducer = Depends(get_producer),
    publisher: Publisher = Depends(get_publisher),
    store: SQLiteObservationStore = Depends(get_store),
):
    o = producer.last_observation
    try:
        pending: Optional[int] = await store.count_unpublished()
    except StorageError as e:
        logger.warning("Could not count pending observations: %s", e)
        pending = None

    return {
        "app": settings.app_name,
        "now_utc": now_utc().isoformat(),
        "producer": producer.state.value,
        "publisher": {
            "state": publisher.state.value,
            "last_status": publisher.last_status,
            "last_error": publisher.last_error,
        },
        "last_observation": (
            ObservationPayload.from_observation(o).model_dump(by_alias=True) if o else None
        ),
        "pending": pending,
    }


@router.get("/observations/unpublished")
async def unpublished(
    limit: int = 500,
    store: SQLiteObservationStore = Depends(get_store),
):
    try:
        rows = await store.read_unpublished(limit=min(max(1, limit), 20000))
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {"count": len(rows), "rows": observations_to_wire(rows)}


@router.post("/publisher/flush")
async def publisher_flush(publisher: Publisher = Depends(get_publisher)):
    published = await publisher.process()
    return {"ok": publisher.last_error is None, "published": published}


# --- Simulation endpoints ---
@router.post("/sim/pulses")
async def sim_pulses(req: SimPulsesRequest, edges: SimulatedEdgeDriver = Depends(get_sim_edges)):
    delivered = edges.pulse(req.pin, req.count)
    return {"ok": True, "pin": req.pin, "delivered": delivered}


@router.post("/sim/vane")
async def sim_vane(req: SimVaneRequest, adc: SimulatedADC = Depends(get_sim_adc)):
    channel = settings.vane_channel if req.channel is None else req.channel
    adc.set_value(channel, req.raw)
    return {"ok": True, "channel": channel, "raw": req.raw}


@router.post("/sim/atmospheric")
async def sim_atmospheric(req: SimAtmosphericRequest, chip: SimulatedChip = Depends(get_sim_chip)):
    chip.set_values(req.temperature, req.humidity, req.pressure)
    return {"ok": True, **req.model_dump()}
