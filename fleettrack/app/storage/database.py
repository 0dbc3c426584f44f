"""
SQLAlchemy storage backend.

Persists vehicles, location history and speed violations through an async
session factory (PostgreSQL via asyncpg in production, SQLite in tests).
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from fleettrack.app.core.exceptions import PersistenceError, ValidationError
from fleettrack.app.core.timeutils import ensure_utc, utcnow
from fleettrack.app.models.location_history import VehicleLocationHistory
from fleettrack.app.models.speed_violation import SpeedViolation
from fleettrack.app.models.vehicle import Vehicle
from fleettrack.app.schemas.reports import SpeedViolationCreate, SpeedViolationResponse
from fleettrack.app.schemas.tracking import LocationSample
from fleettrack.app.schemas.vehicle import VehicleCreate, VehicleResponse
from fleettrack.app.storage.base import TelemetryStorage

logger = logging.getLogger(__name__)


class DatabaseStorage(TelemetryStorage):
    """Relational implementation of the storage capability."""

    name = "database"

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        engine: Optional[AsyncEngine] = None,
    ):
        self._session_factory = session_factory
        self._engine = engine

    def _fail(self, operation: str, exc: Exception) -> PersistenceError:
        logger.error("Storage operation %s failed: %s", operation, exc)
        return PersistenceError(f"Storage operation '{operation}' failed", operation=operation)

    async def _duplicate_plate(
        self, session: AsyncSession, license_plate: str, exclude_id: Optional[str] = None
    ) -> bool:
        stmt = select(Vehicle.id).where(
            func.lower(Vehicle.license_plate) == license_plate.strip().lower()
        )
        if exclude_id is not None:
            stmt = stmt.where(Vehicle.id != exclude_id)
        result = await session.execute(stmt.limit(1))
        return result.scalar_one_or_none() is not None

    # Vehicles

    async def list_vehicles(self) -> List[VehicleResponse]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(Vehicle).order_by(Vehicle.created_at, Vehicle.name))
                return [VehicleResponse.model_validate(row) for row in result.scalars().all()]
        except SQLAlchemyError as exc:
            raise self._fail("list_vehicles", exc) from exc

    async def get_vehicle(self, vehicle_id: str) -> Optional[VehicleResponse]:
        try:
            async with self._session_factory() as session:
                row = await session.get(Vehicle, vehicle_id)
                return VehicleResponse.model_validate(row) if row else None
        except SQLAlchemyError as exc:
            raise self._fail("get_vehicle", exc) from exc

    async def get_vehicle_by_license_plate(self, license_plate: str) -> Optional[VehicleResponse]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Vehicle).where(
                        func.lower(Vehicle.license_plate) == license_plate.strip().lower()
                    )
                )
                row = result.scalars().first()
                return VehicleResponse.model_validate(row) if row else None
        except SQLAlchemyError as exc:
            raise self._fail("get_vehicle_by_license_plate", exc) from exc

    async def create_vehicle(self, data: VehicleCreate) -> VehicleResponse:
        try:
            async with self._session_factory() as session:
                if await self._duplicate_plate(session, data.license_plate):
                    raise ValidationError(
                        f"Vehicle with license plate {data.license_plate} already exists",
                        field="license_plate",
                        value=data.license_plate,
                    )
                row = Vehicle(**data.model_dump(), last_update=utcnow())
                session.add(row)
                await session.commit()
                await session.refresh(row)
                return VehicleResponse.model_validate(row)
        except IntegrityError as exc:
            raise ValidationError(
                f"Vehicle with license plate {data.license_plate} already exists",
                field="license_plate",
                value=data.license_plate,
            ) from exc
        except SQLAlchemyError as exc:
            raise self._fail("create_vehicle", exc) from exc

    async def update_vehicle(self, vehicle_id: str, updates: Dict[str, Any]) -> Optional[VehicleResponse]:
        try:
            async with self._session_factory() as session:
                row = await session.get(Vehicle, vehicle_id)
                if row is None:
                    return None

                plate = updates.get("license_plate")
                if plate is not None and await self._duplicate_plate(session, plate, exclude_id=vehicle_id):
                    raise ValidationError(
                        f"Vehicle with license plate {plate} already exists",
                        field="license_plate",
                        value=plate,
                    )

                for key, value in updates.items():
                    if key == "last_update":
                        value = ensure_utc(value)
                    setattr(row, key, value)

                await session.commit()
                await session.refresh(row)
                return VehicleResponse.model_validate(row)
        except SQLAlchemyError as exc:
            raise self._fail("update_vehicle", exc) from exc

    async def delete_vehicle(self, vehicle_id: str) -> bool:
        try:
            async with self._session_factory() as session:
                # History is removed explicitly; SQLite only cascades with PRAGMA foreign_keys
                await session.execute(
                    delete(VehicleLocationHistory).where(VehicleLocationHistory.vehicle_id == vehicle_id)
                )
                result = await session.execute(delete(Vehicle).where(Vehicle.id == vehicle_id))
                await session.commit()
                return result.rowcount > 0
        except SQLAlchemyError as exc:
            raise self._fail("delete_vehicle", exc) from exc

    # Location history

    async def append_location_sample(self, sample: LocationSample) -> LocationSample:
        try:
            async with self._session_factory() as session:
                session.add(VehicleLocationHistory(**sample.model_dump()))
                await session.commit()
                return sample
        except SQLAlchemyError as exc:
            raise self._fail("append_location_sample", exc) from exc

    async def get_location_history(
        self, vehicle_id: str, start: datetime, end: datetime
    ) -> List[LocationSample]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(VehicleLocationHistory).where(
                        VehicleLocationHistory.vehicle_id == vehicle_id,
                        VehicleLocationHistory.recorded_at >= ensure_utc(start),
                        VehicleLocationHistory.recorded_at <= ensure_utc(end),
                    ).order_by(VehicleLocationHistory.recorded_at, VehicleLocationHistory.id)
                )
                return [LocationSample.model_validate(row) for row in result.scalars().all()]
        except SQLAlchemyError as exc:
            raise self._fail("get_location_history", exc) from exc

    async def get_fleet_history(self, start: datetime, end: datetime) -> List[LocationSample]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(VehicleLocationHistory).where(
                        VehicleLocationHistory.recorded_at >= ensure_utc(start),
                        VehicleLocationHistory.recorded_at <= ensure_utc(end),
                    ).order_by(VehicleLocationHistory.recorded_at, VehicleLocationHistory.id)
                )
                return [LocationSample.model_validate(row) for row in result.scalars().all()]
        except SQLAlchemyError as exc:
            raise self._fail("get_fleet_history", exc) from exc

    # Speed violations

    async def add_speed_violation(self, violation: SpeedViolationCreate) -> SpeedViolationResponse:
        try:
            async with self._session_factory() as session:
                row = SpeedViolation(**violation.model_dump())
                session.add(row)
                await session.commit()
                await session.refresh(row)
                return SpeedViolationResponse.model_validate(row)
        except SQLAlchemyError as exc:
            raise self._fail("add_speed_violation", exc) from exc

    async def get_speed_violations(self, start: datetime, end: datetime) -> List[SpeedViolationResponse]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(SpeedViolation).where(
                        SpeedViolation.timestamp >= ensure_utc(start),
                        SpeedViolation.timestamp <= ensure_utc(end),
                    ).order_by(SpeedViolation.timestamp.desc())
                )
                return [SpeedViolationResponse.model_validate(row) for row in result.scalars().all()]
        except SQLAlchemyError as exc:
            raise self._fail("get_speed_violations", exc) from exc

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
