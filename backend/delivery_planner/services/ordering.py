"""Ordering policies feeding the pricing function.

Each screen prices the same pending orders in its own order, so each caller
names its policy explicitly instead of the pricing function inferring one.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Sequence

from delivery_planner.services.models import Stop
from delivery_planner.services.routing import nearest_neighbor_order


class OrderingPolicy(str, Enum):
    SUBMITTED = "submitted"                  # allocation commit, bulk confirmation
    PO_DATE = "po_date"                      # allocation planner preview
    NEAREST_NEIGHBOR = "nearest_neighbor"    # route planner
    ZONE_THEN_PO_DATE = "zone_then_po_date"  # calculate route
    DISTANCE_ASC = "distance_asc"            # batch recomputation after removal


_FAR_AWAY = Decimal("999")


def _po_date_key(stop: Stop):
    return (stop.po_date or date.max, stop.order_id or 0)


def _by_po_date(stops: Sequence[Stop]) -> list[Stop]:
    return sorted(stops, key=_po_date_key)


def _by_zone_then_po_date(stops: Sequence[Stop]) -> list[Stop]:
    groups: dict = {}
    for stop in _by_po_date(stops):
        groups.setdefault(stop.zone_id, []).append(stop)
    return [stop for group in groups.values() for stop in group]


def _by_distance(stops: Sequence[Stop]) -> list[Stop]:
    return sorted(stops, key=lambda stop: (stop.distance, stop.order_id or 0))


def _by_nearest_neighbor(stops: Sequence[Stop]) -> list[Stop]:
    # oldest PO first, then nearest; unknown distance goes last
    presorted = sorted(
        stops,
        key=lambda stop: (
            stop.po_date or date.max,
            stop.distance_from_depot if stop.distance_from_depot is not None else _FAR_AWAY,
            stop.order_id or 0,
        ),
    )
    return nearest_neighbor_order(presorted)


_POLICIES = {
    OrderingPolicy.SUBMITTED: list,
    OrderingPolicy.PO_DATE: _by_po_date,
    OrderingPolicy.NEAREST_NEIGHBOR: _by_nearest_neighbor,
    OrderingPolicy.ZONE_THEN_PO_DATE: _by_zone_then_po_date,
    OrderingPolicy.DISTANCE_ASC: _by_distance,
}


def order_stops(stops: Sequence[Stop], policy: OrderingPolicy) -> list[Stop]:
    """Return a new list of stops arranged by ``policy``."""
    return _POLICIES[OrderingPolicy(policy)](stops)
