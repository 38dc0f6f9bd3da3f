"""
Delivery order model

Lifecycle:
- created unassigned: batch_id = NULL, status = pending
- allocate: joins a batch, status = confirmed, rate fields written by pricing
- start delivery: in_transit
- complete: on_time / delayed, depending on actual vs scheduled date
- removed from batch / batch deleted: back to pending, rate fields zeroed

Rate fields:
- total_rate is the drop cost produced by the pricing run that last committed it
- base_rate is only set on the stop that was first in that run
- additional_rate_type is one of ADDITIONAL_RATE_TYPES; a repeat-client
  stop is recorded as "none" with additional_rate 0
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from delivery_planner.core.config import settings
from delivery_planner.db.base import Base


ORDER_STATUSES = ("pending", "confirmed", "in_transit", "on_time", "delayed", "cancelled")
ADDITIONAL_RATE_TYPES = ("none", "drop_same_zone", "drop_other_zone")


class DeliveryOrder(Base):
    """Delivery order (one PO)"""
    __tablename__ = "delivery_orders"

    id = Column(Integer, primary_key=True, index=True)

    # === PO ===
    po_number = Column(String(50), nullable=False, index=True, comment="PO number")
    po_date = Column(Date, nullable=False, index=True, comment="PO date")
    scheduled_date = Column(Date, nullable=False, index=True, comment="Scheduled delivery date")
    actual_date = Column(Date, index=True, comment="Actual delivery date")

    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    batch_id = Column(Integer, ForeignKey("delivery_batches.id"), index=True, comment="Batch (NULL = unassigned)")

    status = Column(String(20), nullable=False, default="pending", index=True, comment="Status")

    # e.g. Pickup, ADD, PPMY; pickup orders never enter planning
    delivery_type = Column(String(50), comment="Delivery type")

    # === Rates ===
    base_rate = Column(DECIMAL(10, 2), default=Decimal("0.00"), comment="Base rate (first stop only)")
    additional_rate_type = Column(String(20), nullable=False, default="none", comment="none / drop_same_zone / drop_other_zone")
    additional_rate = Column(DECIMAL(10, 2), default=Decimal("0.00"), comment="Additional drop rate")
    total_rate = Column(DECIMAL(10, 2), default=Decimal("0.00"), comment="Effective drop cost")

    # === Totals (from items) ===
    total_items = Column(Integer, default=0)
    total_quantity = Column(Integer, default=0)
    total_amount = Column(DECIMAL(14, 2), default=Decimal("0.00"))

    remarks = Column(Text)

    created_by = Column(Integer, comment="Actor ID")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    client = relationship("Client", back_populates="orders", lazy="joined")
    batch = relationship("DeliveryBatch", back_populates="orders")
    items = relationship("DeliveryOrderItem", back_populates="order", cascade="all, delete-orphan", lazy="selectin")

    def __repr__(self):
        return f"<DeliveryOrder {self.po_number} ({self.status})>"

    @property
    def is_pickup(self) -> bool:
        return (self.delivery_type or "").lower() == settings.PICKUP_DELIVERY_TYPE.lower()

    @property
    def drop_cost(self) -> Decimal:
        """Display drop cost: the additional rate on drop rows, otherwise total_rate"""
        if self.additional_rate_type in ("drop_same_zone", "drop_other_zone"):
            return Decimal(str(self.additional_rate or 0))
        return Decimal(str(self.total_rate or 0))

    @property
    def days_variance(self):
        """Days between scheduled and actual delivery (negative = early)"""
        if not self.actual_date or not self.scheduled_date:
            return None
        return (self.actual_date - self.scheduled_date).days

    def release(self) -> None:
        """Back to the unassigned pool"""
        self.batch_id = None
        self.status = "pending"
        self.base_rate = Decimal("0")
        self.additional_rate_type = "none"
        self.additional_rate = Decimal("0")
        self.total_rate = Decimal("0")

    def recalculate_totals(self) -> None:
        """Recompute totals from line items"""
        self.total_items = len(self.items)
        self.total_quantity = sum(item.quantity or 0 for item in self.items)
        self.total_amount = sum((item.total_price or Decimal("0") for item in self.items), Decimal("0"))
