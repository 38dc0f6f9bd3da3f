"""Build transient pricing/routing stops from persisted orders."""

from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from delivery_planner.models.delivery_order import DeliveryOrder
from delivery_planner.services.models import Stop


def stop_from_order(order: DeliveryOrder, planning_date: Optional[date] = None) -> Stop:
    """Resolve client -> area -> zone for one order.

    A missing link leaves area_id / zone_id as None and the base rate at 0.
    The stop is overdue when its scheduled date is strictly before planning_date.
    """
    client = order.client
    distance = None
    if client is not None and client.distance_km is not None:
        distance = Decimal(str(client.distance_km))

    is_overdue = bool(
        planning_date is not None
        and order.scheduled_date is not None
        and order.scheduled_date < planning_date
    )

    return Stop(
        order_id=order.id,
        client_id=order.client_id,
        area_id=client.area_id if client is not None else None,
        zone_base_rate=client.base_rate if client is not None else Decimal("0"),
        distance_from_depot=distance,
        is_overdue=is_overdue,
        zone_id=client.zone_id if client is not None else None,
        po_date=order.po_date,
    )


def stops_from_orders(orders: Iterable[DeliveryOrder], planning_date: Optional[date] = None) -> List[Stop]:
    return [stop_from_order(order, planning_date) for order in orders]
