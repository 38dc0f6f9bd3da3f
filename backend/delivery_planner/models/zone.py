"""
Zone (area group) and area reference data

Structure:
- Zone: a cluster of areas sharing one depot -> zone base rate
  └── Area
      └── Client (see client.py)

The first stop of a delivery sequence is charged its zone's base rate.
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from delivery_planner.db.base import Base


class Zone(Base):
    """Zone / area group"""
    __tablename__ = "zones"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), unique=True, nullable=False, index=True, comment="Zone code")
    name = Column(String(100), nullable=False, comment="Zone name")
    description = Column(Text, comment="Description")

    # depot -> zone rate charged for the first stop
    base_rate = Column(DECIMAL(10, 2), nullable=False, default=Decimal("0.00"), comment="Base rate")

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    areas = relationship("Area", back_populates="zone")

    def __repr__(self):
        return f"<Zone {self.code}: {self.base_rate}>"


class Area(Base):
    """Area - belongs to one zone"""
    __tablename__ = "areas"

    id = Column(Integer, primary_key=True, index=True)
    zone_id = Column(Integer, ForeignKey("zones.id"), index=True, comment="Zone ID")
    name = Column(String(100), nullable=False)
    code = Column(String(20), comment="Area code")
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    zone = relationship("Zone", back_populates="areas", lazy="joined")
    clients = relationship("Client", back_populates="area")

    def __repr__(self):
        return f"<Area {self.name} (zone {self.zone_id})>"
