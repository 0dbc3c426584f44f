"""
Trip history API endpoint.
"""

from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, Query

from fleettrack.app.core.config import Settings
from fleettrack.app.core.dependencies import get_settings, get_storage
from fleettrack.app.schemas.trip import Trip
from fleettrack.app.services.trip_builder import TripService
from fleettrack.app.storage.base import TelemetryStorage

router = APIRouter(prefix="/trips", tags=["Trips"])


@router.get("", response_model=List[Trip])
async def list_trips(
    vehicle_id: str = Query(..., description="Vehicle ID"),
    start_date: datetime = Query(..., description="Window start (ISO-8601, inclusive)"),
    end_date: datetime = Query(..., description="Window end (ISO-8601, inclusive)"),
    storage: TelemetryStorage = Depends(get_storage),
    app_settings: Settings = Depends(get_settings),
):
    """
    Reconstruct the trip of a vehicle over a time window.

    Returns an empty list when the vehicle has no history in the window.
    """
    return await TripService.get_trips(
        storage,
        vehicle_id,
        start_date,
        end_date,
        stop_min_duration_ms=app_settings.stop_min_duration_ms,
    )
