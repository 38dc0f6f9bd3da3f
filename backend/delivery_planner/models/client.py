"""
Client model

client -> area -> zone is the chain used to resolve a stop's area id,
its zone and the zone base rate. distance_km is the distance from the depot.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from delivery_planner.db.base import Base


class Client(Base):
    """Delivery client"""
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=False, index=True, comment="Client code")
    name = Column(String(150), comment="Client name")

    area_id = Column(Integer, ForeignKey("areas.id"), index=True, comment="Area ID")

    # may be unset; treated as 0 by pricing and routing
    distance_km = Column(DECIMAL(8, 2), comment="Distance from depot (km)")

    cutoff_time = Column(String(20), comment="Receiving cutoff")
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    area = relationship("Area", back_populates="clients", lazy="joined")
    orders = relationship("DeliveryOrder", back_populates="client")

    def __repr__(self):
        return f"<Client {self.code}>"

    @property
    def zone(self):
        return self.area.zone if self.area else None

    @property
    def distance(self) -> Decimal:
        return Decimal(str(self.distance_km)) if self.distance_km is not None else Decimal("0")

    @property
    def base_rate(self) -> Decimal:
        """Base rate of the client's zone, 0 when the chain is incomplete"""
        zone = self.zone
        if zone is None or zone.base_rate is None:
            return Decimal("0")
        return Decimal(str(zone.base_rate))

    @property
    def zone_id(self) -> Optional[int]:
        zone = self.zone
        return zone.id if zone else None
