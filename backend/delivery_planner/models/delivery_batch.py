"""
Delivery batch model - a group of orders committed to one vehicle and date

State machine:
- planned     (created by allocate, never empty)
- in_transit  (start delivery)
- completed   (complete batch)
- cancelled   (reserved, not reachable from the planner)

Invariants kept by services/batch_lifecycle.py:
- total_rate == sum of member orders' total_rate
- order_count == number of members
- a batch without members is deleted, never persisted
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from delivery_planner.db.base import Base
from delivery_planner.models.vehicle import vehicle_type_label


BATCH_STATUSES = ("planned", "in_transit", "completed", "cancelled")
BATCH_NUMBER_PREFIX = "BTH"

STATUS_COLORS = {
    "planned": "blue",
    "in_transit": "yellow",
    "completed": "green",
    "cancelled": "red",
}


class DeliveryBatch(Base):
    """Delivery batch"""
    __tablename__ = "delivery_batches"

    id = Column(Integer, primary_key=True, index=True)

    # BTH-yymmdd-NNN, sequence is per planned date
    batch_number = Column(String(30), unique=True, nullable=False, index=True, comment="Batch number")

    planned_date = Column(Date, nullable=False, index=True, comment="Planned date")
    actual_date = Column(Date, comment="Delivered date")

    # zone of the first submitted order
    zone_id = Column(Integer, ForeignKey("zones.id"), index=True, comment="Zone ID")

    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), comment="Vehicle ID")
    vehicle_type = Column(String(20), nullable=False, default="l300", comment="l300 / truck")

    # === Aggregates ===
    order_count = Column(Integer, default=0)
    total_items = Column(Integer, default=0)
    total_value = Column(DECIMAL(12, 2), default=Decimal("0.00"))
    total_rate = Column(DECIMAL(10, 2), default=Decimal("0.00"))
    # round trip: 2 x farthest member
    total_distance_km = Column(DECIMAL(8, 2), default=Decimal("0.00"))

    status = Column(String(20), nullable=False, default="planned", index=True, comment="Status")

    notes = Column(Text)
    created_by = Column(Integer, comment="Actor ID")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    zone = relationship("Zone", lazy="joined")
    vehicle = relationship("Vehicle", back_populates="batches", lazy="joined")
    orders = relationship("DeliveryOrder", back_populates="batch", order_by="DeliveryOrder.id")

    def __repr__(self):
        return f"<DeliveryBatch {self.batch_number} ({self.status}): {self.order_count} orders>"

    @property
    def vehicle_type_label(self) -> str:
        return vehicle_type_label(self.vehicle_type)

    @property
    def status_color(self) -> str:
        return STATUS_COLORS.get(self.status, "gray")
