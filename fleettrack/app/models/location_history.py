"""
Vehicle location history database model.

Append-only log of every accepted position fix, keyed by vehicle and time.
"""

from sqlalchemy import Column, DateTime, Enum, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from fleettrack.app.db.session import Base
from fleettrack.app.models.enums import IgnitionStatus, VehicleStatus


class VehicleLocationHistory(Base):
    """
    Location history model.

    One row per LocationSample. Rows are never updated.
    """
    __tablename__ = "vehicle_location_history"
    __table_args__ = (
        Index("ix_location_history_vehicle_time", "vehicle_id", "recorded_at"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    vehicle_id = Column(String(36), ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False)

    # GPS fix
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    speed = Column(Float, default=0, nullable=False)
    heading = Column(Float, default=0, nullable=False)
    accuracy = Column(Float, nullable=True)

    # Vehicle state at the time of the fix
    status = Column(Enum(VehicleStatus), nullable=False)
    ignition = Column(Enum(IgnitionStatus), nullable=False)

    recorded_at = Column(DateTime(timezone=True), nullable=False, index=True)

    vehicle = relationship("Vehicle", back_populates="location_history")

    def __repr__(self):
        return f"<VehicleLocationHistory(vehicle_id={self.vehicle_id}, lat={self.latitude}, lng={self.longitude})>"
