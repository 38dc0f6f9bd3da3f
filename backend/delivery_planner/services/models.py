"""Planning domain models shared by pricing, ordering and routing."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional


ZERO = Decimal("0")


@dataclass(frozen=True, slots=True)
class Stop:
    """One order considered inside a pricing or routing sequence."""

    order_id: Optional[int]
    client_id: Optional[int]
    area_id: Optional[int]
    zone_base_rate: Decimal = ZERO
    distance_from_depot: Optional[Decimal] = None
    is_overdue: bool = False
    zone_id: Optional[int] = None
    po_date: Optional[date] = None

    @property
    def distance(self) -> Decimal:
        return self.distance_from_depot if self.distance_from_depot is not None else ZERO


class ChargeKind(str, Enum):
    FIRST_STOP = "first_stop"
    REPEAT_CLIENT = "repeat_client"
    SAME_ZONE = "same_zone"
    OTHER_ZONE = "other_zone"


# persisted additional_rate_type for each charge kind
PERSISTED_RATE_TYPES = {
    ChargeKind.FIRST_STOP: "none",
    ChargeKind.REPEAT_CLIENT: "none",
    ChargeKind.SAME_ZONE: "drop_same_zone",
    ChargeKind.OTHER_ZONE: "drop_other_zone",
}


@dataclass(frozen=True, slots=True)
class StopCharge:
    stop: Stop
    cost: Decimal
    kind: ChargeKind

    @property
    def rate_type(self) -> str:
        return PERSISTED_RATE_TYPES[self.kind]

    @property
    def additional_rate(self) -> Decimal:
        if self.kind in (ChargeKind.SAME_ZONE, ChargeKind.OTHER_ZONE):
            return self.cost
        return ZERO

    @property
    def base_rate(self) -> Decimal:
        return self.cost if self.kind is ChargeKind.FIRST_STOP else ZERO


@dataclass(frozen=True, slots=True)
class PricingResult:
    charges: tuple[StopCharge, ...]
    total: Decimal

    @property
    def costs(self) -> list[Decimal]:
        return [charge.cost for charge in self.charges]

    def cumulative_costs(self) -> list[Decimal]:
        running = ZERO
        totals = []
        for charge in self.charges:
            running += charge.cost
            totals.append(running)
        return totals


@dataclass(frozen=True, slots=True)
class RoutePlan:
    stops: tuple[Stop, ...]
    leg_distances: tuple[Decimal, ...]
    total_route_km: Decimal
    max_distance: Decimal = ZERO
    metadata: dict = field(default_factory=dict)
