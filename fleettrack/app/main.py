"""
FastAPI Application Entry Point.

This is the main application file for the FleetTrack backend.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from fleettrack.app.api.v1.router import router as api_v1_router
from fleettrack.app.core.config import settings
from fleettrack.app.core.exceptions import (
    AppException,
    app_exception_handler,
    generic_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from fleettrack.app.core.logging_config import configure_logging
from fleettrack.app.core.observability import ObservabilityMiddleware
from fleettrack.app.services.ingestion import TrackingIngestor
from fleettrack.app.services.notification_service import VehicleUpdateRegistry
from fleettrack.app.services.simulator import PositionSimulator
from fleettrack.app.storage.factory import create_storage

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Builds the configured storage backend.
    2. Wires the subscriber registry and ingestion pipeline.
    3. Starts the simulator when it is the configured position source.
    """
    configure_logging(settings.log_level)

    storage = await create_storage(settings)
    registry = VehicleUpdateRegistry(default_maxsize=settings.subscriber_queue_size)
    ingestor = TrackingIngestor(storage, registry)

    app.state.storage = storage
    app.state.registry = registry
    app.state.ingestor = ingestor

    simulator = None
    if settings.position_source == "simulation":
        simulator = PositionSimulator(ingestor, storage, interval_seconds=settings.simulation_interval_seconds)
        simulator.start()
    logger.info("Position source: %s", settings.position_source)

    yield

    if simulator is not None:
        await simulator.stop()
    registry.close_all()
    await storage.close()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Fleet tracking backend: live positions, trips and violation reports",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status, application information and the active storage backend
    """
    storage = getattr(app.state, "storage", None)
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "storage": storage.name if storage is not None else None,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": "Welcome to FleetTrack Backend API",
        "docs": "/docs",
        "health": "/health",
    }
