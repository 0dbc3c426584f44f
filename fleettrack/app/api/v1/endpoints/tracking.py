"""
Tracker ingestion API endpoint.

GPS devices post their position here, identified by licence plate.
"""

import logging

from fastapi import APIRouter, Depends

from fleettrack.app.core.dependencies import get_ingestor
from fleettrack.app.schemas.tracking import TrackingData, TrackingResponse
from fleettrack.app.services.ingestion import TrackingIngestor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tracking", tags=["Tracking"])


@router.post("", response_model=TrackingResponse)
async def report_position(
    data: TrackingData,
    ingestor: TrackingIngestor = Depends(get_ingestor),
):
    """
    Accept a position report from a tracker.

    Returns 404 when no vehicle carries the licence plate.
    """
    vehicle = await ingestor.ingest_sample(
        data.license_plate,
        data.latitude,
        data.longitude,
        data.speed,
        heading=data.heading,
        accuracy=data.accuracy,
    )
    logger.info("Position accepted for %s (%.1f km/h)", vehicle.license_plate, vehicle.current_speed)
    return TrackingResponse(success=True, message="Location updated", vehicle=vehicle)
