"""
Vehicle database model.

Holds the mutable current-state snapshot of each tracked vehicle.
"""

import uuid

from sqlalchemy import Column, DateTime, Enum, Float, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from fleettrack.app.db.session import Base
from fleettrack.app.models.enums import IgnitionStatus, VehicleStatus


def _new_id() -> str:
    return str(uuid.uuid4())


class Vehicle(Base):
    """
    Vehicle model.

    Updated on every ingested sample. Deleting a vehicle removes its
    entire location history.
    """
    __tablename__ = "vehicles"

    id = Column(String(36), primary_key=True, default=_new_id)

    # Identification
    name = Column(String(200), nullable=False)
    license_plate = Column(String(20), unique=True, nullable=False, index=True)
    model = Column(String(100), nullable=True)

    # State
    status = Column(Enum(VehicleStatus), default=VehicleStatus.OFFLINE, nullable=False)
    ignition = Column(Enum(IgnitionStatus), default=IgnitionStatus.OFF, nullable=False)
    current_speed = Column(Float, default=0, nullable=False)
    speed_limit = Column(Float, default=80, nullable=False)
    heading = Column(Float, default=0, nullable=False)

    # Last known position
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    accuracy = Column(Float, default=5, nullable=False)
    battery_level = Column(Integer, nullable=True)

    # Timestamps
    last_update = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    location_history = relationship(
        "VehicleLocationHistory",
        back_populates="vehicle",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<Vehicle(id={self.id}, plate='{self.license_plate}', status='{self.status.value}')>"
