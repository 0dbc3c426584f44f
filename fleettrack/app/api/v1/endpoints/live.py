"""
Live vehicle updates over WebSocket.

On connect the client receives the current roster, then a fresh roster after
every ingestion, simulation tick or roster change:

    {"type": "vehicles", "data": [...]}
"""

import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from fleettrack.app.core.dependencies import get_registry, get_storage
from fleettrack.app.schemas.vehicle import VehicleResponse
from fleettrack.app.services.notification_service import VehicleUpdateRegistry
from fleettrack.app.storage.base import TelemetryStorage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Live"])


def vehicles_message(vehicles: List[VehicleResponse]) -> dict:
    return {"type": "vehicles", "data": [v.model_dump(mode="json") for v in vehicles]}


async def _drain_client(websocket: WebSocket) -> None:
    # Incoming frames are ignored; this only notices the disconnect
    while True:
        await websocket.receive_text()


@router.websocket("/ws")
async def vehicle_updates(
    websocket: WebSocket,
    registry: VehicleUpdateRegistry = Depends(get_registry),
    storage: TelemetryStorage = Depends(get_storage),
):
    await websocket.accept()
    subscription = registry.subscribe()
    reader = asyncio.create_task(_drain_client(websocket))
    update = None
    try:
        await websocket.send_json(vehicles_message(await storage.list_vehicles()))

        while True:
            update = asyncio.create_task(subscription.get())
            done, _ = await asyncio.wait({update, reader}, return_when=asyncio.FIRST_COMPLETED)
            if reader in done:
                reader.result()
                break
            await websocket.send_json(vehicles_message(update.result()))
    except WebSocketDisconnect:
        logger.debug("Live client %s disconnected", subscription.id)
    finally:
        reader.cancel()
        if update is not None:
            update.cancel()
        subscription.close()
