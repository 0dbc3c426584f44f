"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from fleettrack.app.api.v1.endpoints import live, reports, tracking, trips, vehicles

router = APIRouter()

# Vehicle roster
router.include_router(vehicles.router)

# Tracker ingestion
router.include_router(tracking.router)

# Trip history and reports
router.include_router(trips.router)
router.include_router(reports.router)

# Live updates (WebSocket)
router.include_router(live.router)
