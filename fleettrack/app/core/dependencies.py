"""
FastAPI dependencies.

Components are built once in the application lifespan and stored on
``app.state``; these dependencies hand them to route handlers.
"""

from starlette.requests import HTTPConnection

from fleettrack.app.core.config import Settings, settings
from fleettrack.app.services.ingestion import TrackingIngestor
from fleettrack.app.services.notification_service import VehicleUpdateRegistry
from fleettrack.app.storage.base import TelemetryStorage


def get_settings() -> Settings:
    return settings


def get_storage(connection: HTTPConnection) -> TelemetryStorage:
    return connection.app.state.storage


def get_ingestor(connection: HTTPConnection) -> TrackingIngestor:
    return connection.app.state.ingestor


def get_registry(connection: HTTPConnection) -> VehicleUpdateRegistry:
    return connection.app.state.registry
