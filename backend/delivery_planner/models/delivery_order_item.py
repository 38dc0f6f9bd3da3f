"""
Delivery order line item
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from delivery_planner.db.base import Base


class DeliveryOrderItem(Base):
    """One part line on a PO"""
    __tablename__ = "delivery_order_items"

    id = Column(Integer, primary_key=True, index=True)
    delivery_order_id = Column(Integer, ForeignKey("delivery_orders.id"), nullable=False, index=True)

    part_number = Column(String(100), nullable=False, comment="Part number")
    description = Column(String(255))
    unit_price = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"))
    quantity = Column(Integer, nullable=False, default=1)
    # unit_price * quantity
    total_price = Column(DECIMAL(14, 2), nullable=False, default=Decimal("0.00"))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    order = relationship("DeliveryOrder", back_populates="items")

    def __repr__(self):
        return f"<DeliveryOrderItem {self.part_number} x{self.quantity}>"

    def calculate_total(self) -> Decimal:
        return Decimal(str(self.unit_price or 0)) * (self.quantity or 0)
