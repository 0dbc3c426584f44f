"""
Speed violation database model.

Created as a side effect of an ingested sample above the vehicle's limit.
"""

import uuid

from sqlalchemy import Column, DateTime, Float, Integer, String
from sqlalchemy.sql import func

from fleettrack.app.db.session import Base


class SpeedViolation(Base):
    """
    Speed violation model.

    ``vehicle_name`` is a snapshot taken when the violation was recorded and
    is intentionally not a foreign key: violations outlive vehicle deletion.
    """
    __tablename__ = "speed_violations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    vehicle_id = Column(String(36), nullable=False, index=True)
    vehicle_name = Column(String(200), nullable=False)

    speed = Column(Float, nullable=False)
    speed_limit = Column(Float, nullable=False)
    excess_speed = Column(Float, nullable=False)

    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    duration = Column(Integer, default=0, nullable=False)  # seconds

    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<SpeedViolation(vehicle_id={self.vehicle_id}, speed={self.speed}, limit={self.speed_limit})>"
