"""
Storage backend selection.

The backend is chosen once at startup from ``settings.storage_backend``.
"""

import logging

from fleettrack.app.core.config import Settings
from fleettrack.app.db.session import create_engine_from_settings, create_session_factory, create_tables
from fleettrack.app.storage.base import TelemetryStorage
from fleettrack.app.storage.database import DatabaseStorage
from fleettrack.app.storage.memory import MemoryStorage, sample_fleet

logger = logging.getLogger(__name__)


async def create_storage(settings: Settings) -> TelemetryStorage:
    """
    Build the configured storage backend.

    The database backend creates its tables on first use; the memory backend
    optionally starts with the demo roster.
    """
    if settings.storage_backend == "database":
        engine = create_engine_from_settings(settings)
        await create_tables(engine)
        logger.info("Using database storage backend")
        return DatabaseStorage(create_session_factory(engine), engine=engine)

    roster = sample_fleet() if settings.seed_sample_fleet else None
    logger.info("Using in-memory storage backend (sample fleet: %s)", bool(roster))
    return MemoryStorage(roster)
