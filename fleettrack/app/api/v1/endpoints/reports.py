"""
Reporting API endpoints.

Violation list, violation statistics and fleet statistics over an inclusive
window. Both bounds default to the last ``report_default_window_days`` days.
"""

from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, Query

from fleettrack.app.core.config import Settings
from fleettrack.app.core.dependencies import get_settings, get_storage
from fleettrack.app.core.timeutils import ensure_utc, utcnow
from fleettrack.app.schemas.reports import FleetStats, SpeedViolationResponse, ViolationStats
from fleettrack.app.services.reporting import ReportingService
from fleettrack.app.storage.base import TelemetryStorage

router = APIRouter(prefix="/reports", tags=["Reports"])


class ReportWindow:
    """Query-string window with defaults."""

    def __init__(
        self,
        start_date: Optional[datetime] = Query(None, description="Window start (ISO-8601, inclusive)"),
        end_date: Optional[datetime] = Query(None, description="Window end (ISO-8601, inclusive)"),
        app_settings: Settings = Depends(get_settings),
    ):
        self.end = ensure_utc(end_date) if end_date else utcnow()
        if start_date:
            self.start = ensure_utc(start_date)
        else:
            self.start = self.end - timedelta(days=app_settings.report_default_window_days)

    def bounds(self) -> Tuple[datetime, datetime]:
        return self.start, self.end


@router.get("/violations", response_model=List[SpeedViolationResponse])
async def list_violations(
    window: ReportWindow = Depends(),
    storage: TelemetryStorage = Depends(get_storage),
):
    """Raw speed violations in the window, newest first."""
    return await ReportingService.get_violations(storage, *window.bounds())


@router.get("/speed-stats", response_model=ViolationStats)
async def speed_stats(
    window: ReportWindow = Depends(),
    storage: TelemetryStorage = Depends(get_storage),
):
    return await ReportingService.get_violation_stats(storage, *window.bounds())


@router.get("/fleet-stats", response_model=FleetStats)
async def fleet_stats(
    window: ReportWindow = Depends(),
    storage: TelemetryStorage = Depends(get_storage),
):
    return await ReportingService.get_fleet_stats(storage, *window.bounds())
