"""
Vehicle model

Two vehicle classes are dispatched:
- l300: L300 van, for batches up to the L300 value limit
- truck: everything above
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, DECIMAL, Text
from sqlalchemy.orm import relationship
from delivery_planner.db.base import Base


VEHICLE_TYPE_LABELS = {
    "l300": "L300 Van",
    "truck": "Truck",
}


def vehicle_type_label(vehicle_type: str) -> str:
    if not vehicle_type:
        return ""
    return VEHICLE_TYPE_LABELS.get(vehicle_type, vehicle_type.capitalize())


class Vehicle(Base):
    """Delivery vehicle"""
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), comment="Internal code")
    name = Column(String(100), comment="Display name")
    type = Column(String(20), nullable=False, default="l300", index=True, comment="l300 / truck")
    plate_number = Column(String(20), nullable=False, unique=True, comment="Plate number")
    max_value = Column(DECIMAL(12, 2), comment="Maximum cargo value")
    max_weight_kg = Column(DECIMAL(10, 2), comment="Maximum load (kg)")
    notes = Column(Text)

    is_active = Column(Boolean, default=True, comment="Available for dispatch")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    batches = relationship("DeliveryBatch", back_populates="vehicle")

    @property
    def display_name(self) -> str:
        return self.name or self.plate_number

    @property
    def type_label(self) -> str:
        return vehicle_type_label(self.type)
