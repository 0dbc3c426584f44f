"""
Vehicle roster API endpoints.

CRUD over vehicles. Every mutation is pushed to live subscribers.
"""

from typing import List

from fastapi import APIRouter, Depends, Path, Response, status

from fleettrack.app.core.dependencies import get_ingestor, get_storage
from fleettrack.app.core.exceptions import NotFoundError
from fleettrack.app.schemas.vehicle import VehicleCreate, VehicleResponse, VehicleUpdate
from fleettrack.app.services.ingestion import TrackingIngestor
from fleettrack.app.storage.base import TelemetryStorage

router = APIRouter(prefix="/vehicles", tags=["Vehicles"])


@router.get("", response_model=List[VehicleResponse])
async def list_vehicles(storage: TelemetryStorage = Depends(get_storage)):
    """List the full vehicle roster with current state."""
    return await storage.list_vehicles()


@router.get("/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle(
    vehicle_id: str = Path(..., description="Vehicle ID"),
    storage: TelemetryStorage = Depends(get_storage),
):
    vehicle = await storage.get_vehicle(vehicle_id)
    if vehicle is None:
        raise NotFoundError("Vehicle", vehicle_id)
    return vehicle


@router.post("", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    vehicle_data: VehicleCreate,
    storage: TelemetryStorage = Depends(get_storage),
    ingestor: TrackingIngestor = Depends(get_ingestor),
):
    """
    Register a vehicle.

    Licence plates are unique (case-insensitive); a duplicate is rejected
    with 400.
    """
    vehicle = await storage.create_vehicle(vehicle_data)
    await ingestor.notify_subscribers()
    return vehicle


@router.patch("/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    vehicle_data: VehicleUpdate,
    vehicle_id: str = Path(..., description="Vehicle ID"),
    storage: TelemetryStorage = Depends(get_storage),
    ingestor: TrackingIngestor = Depends(get_ingestor),
):
    """Partially update a vehicle. Only fields present in the body change."""
    updates = vehicle_data.model_dump(exclude_unset=True)
    if not updates:
        vehicle = await storage.get_vehicle(vehicle_id)
    else:
        vehicle = await storage.update_vehicle(vehicle_id, updates)
    if vehicle is None:
        raise NotFoundError("Vehicle", vehicle_id)

    if updates:
        await ingestor.notify_subscribers()
    return vehicle


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vehicle(
    vehicle_id: str = Path(..., description="Vehicle ID"),
    storage: TelemetryStorage = Depends(get_storage),
    ingestor: TrackingIngestor = Depends(get_ingestor),
):
    """Delete a vehicle together with its location history."""
    if not await storage.delete_vehicle(vehicle_id):
        raise NotFoundError("Vehicle", vehicle_id)
    await ingestor.notify_subscribers()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
