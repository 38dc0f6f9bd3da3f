"""
Planner previews (read only)

- list_unallocated: pending orders due by the planning date, priced in PO-date order
- plan_route: the same pool, sequenced nearest-neighbour and priced in that order
- calculate_route: a chosen set grouped by zone, PO date within each zone

Each view names its own OrderingPolicy, so the totals for one set of orders
legitimately differ between views.
"""

from collections import OrderedDict
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from fastapi import HTTPException
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from delivery_planner.core.config import settings
from delivery_planner.models.delivery_batch import DeliveryBatch
from delivery_planner.models.delivery_order import DeliveryOrder
from delivery_planner.models.vehicle import Vehicle
from delivery_planner.schemas.planner import (
    AllocationPlannerResponse,
    AllocationSummary,
    CalculateRouteResponse,
    CalculatedStop,
    PlannedStop,
    RoutePlanGroup,
    RoutePlannerResponse,
    RouteStop,
    RouteSummary,
    UnallocatedGroup,
    UpcomingDay,
    ZoneSummary,
)
from delivery_planner.services.models import StopCharge
from delivery_planner.services.ordering import OrderingPolicy, order_stops
from delivery_planner.services.pricing import price_stops
from delivery_planner.services.responses import build_batch_response, build_vehicle_response
from delivery_planner.services.routing import measure_route
from delivery_planner.services.stops import stops_from_orders
from delivery_planner.services.vehicle_rule import recommend_vehicle, recommend_vehicle_label


def pending_orders_query():
    """Unassigned, pending, non-pickup orders"""
    return select(DeliveryOrder).where(
        DeliveryOrder.status == "pending",
        DeliveryOrder.batch_id.is_(None),
        or_(
            DeliveryOrder.delivery_type.is_(None),
            func.lower(DeliveryOrder.delivery_type) != settings.PICKUP_DELIVERY_TYPE.lower(),
        ),
    )


def _planned_stop_fields(order: DeliveryOrder, charge: StopCharge) -> dict:
    client = order.client
    area = client.area if client else None
    zone = client.zone if client else None
    return dict(
        id=order.id,
        po_number=order.po_number,
        po_date=order.po_date,
        scheduled_date=order.scheduled_date,
        client_id=order.client_id,
        client_code=client.code if client else "",
        client_name=(client.name or "") if client else "",
        area_name=area.name if area else None,
        zone_id=zone.id if zone else None,
        zone_name=zone.name if zone else "Unassigned",
        zone_code=zone.code if zone else "-",
        distance_km=float(charge.stop.distance),
        total_items=order.total_items or 0,
        total_quantity=order.total_quantity or 0,
        total_amount=float(order.total_amount or 0),
        base_rate=float(charge.stop.zone_base_rate),
        drop_cost=float(charge.cost),
        charge_kind=charge.kind.value,
        is_overdue=charge.stop.is_overdue,
    )


def _zone_summary(orders: Sequence[DeliveryOrder]) -> List[ZoneSummary]:
    groups: Dict[str, ZoneSummary] = OrderedDict()
    for order in orders:
        zone = order.client.zone if order.client else None
        name = zone.name if zone else "Unassigned"
        if name not in groups:
            groups[name] = ZoneSummary(name=name, code=zone.code if zone else "-", count=0)
        groups[name].count += 1
    return list(groups.values())


def _sum_amount(orders: Sequence[DeliveryOrder]) -> Decimal:
    return sum((Decimal(str(order.total_amount or 0)) for order in orders), Decimal("0"))


async def list_unallocated(db: AsyncSession, planning_date: date) -> Optional[UnallocatedGroup]:
    """Pending orders scheduled on or before planning_date, priced oldest PO first.

    Returns None when nothing is waiting.
    """
    result = await db.execute(
        pending_orders_query()
        .where(DeliveryOrder.scheduled_date <= planning_date)
        .order_by(DeliveryOrder.po_date, DeliveryOrder.id)
    )
    orders = list(result.unique().scalars().all())
    if not orders:
        return None

    by_id = {order.id: order for order in orders}
    stops = order_stops(stops_from_orders(orders, planning_date), OrderingPolicy.PO_DATE)
    pricing = price_stops(stops)
    total_value = _sum_amount(orders)

    planned = [PlannedStop(**_planned_stop_fields(by_id[c.stop.order_id], c)) for c in pricing.charges]
    return UnallocatedGroup(
        order_count=len(orders),
        total_items=sum(order.total_items or 0 for order in orders),
        total_value=float(total_value),
        batch_cost=float(pricing.total),
        recommended_vehicle=recommend_vehicle(total_value),
        recommended_vehicle_label=recommend_vehicle_label(total_value),
        overdue_count=sum(1 for stop in planned if stop.is_overdue),
        zone_summary=_zone_summary(orders),
        orders=planned,
    )


async def allocation_planner_view(db: AsyncSession, planning_date: date) -> AllocationPlannerResponse:
    unallocated = await list_unallocated(db, planning_date)

    result = await db.execute(
        select(DeliveryBatch)
        .where(DeliveryBatch.planned_date == planning_date, DeliveryBatch.status != "completed")
        .order_by(DeliveryBatch.created_at.desc(), DeliveryBatch.id.desc())
    )
    batches = list(result.unique().scalars().all())

    members: Dict[int, List[DeliveryOrder]] = {batch.id: [] for batch in batches}
    if batches:
        result = await db.execute(
            select(DeliveryOrder)
            .where(DeliveryOrder.batch_id.in_(list(members)))
            .order_by(DeliveryOrder.id)
        )
        for order in result.unique().scalars().all():
            members[order.batch_id].append(order)

    result = await db.execute(
        select(Vehicle).where(Vehicle.is_active == True).order_by(Vehicle.type, Vehicle.plate_number)
    )
    vehicles = result.scalars().all()

    summary = AllocationSummary(
        unallocated_orders=unallocated.order_count if unallocated else 0,
        unallocated_value=unallocated.total_value if unallocated else 0,
        allocated_batches=len(batches),
        allocated_orders=sum(batch.order_count or 0 for batch in batches),
        allocated_value=float(sum((Decimal(str(batch.total_value or 0)) for batch in batches), Decimal("0"))),
    )
    return AllocationPlannerResponse(
        selected_date=planning_date,
        unallocated=unallocated,
        batches=[build_batch_response(batch, members[batch.id]) for batch in batches],
        vehicles=[build_vehicle_response(vehicle) for vehicle in vehicles],
        summary=summary,
    )


async def plan_route(db: AsyncSession, planning_date: date) -> Optional[RoutePlanGroup]:
    """Sequence pending orders nearest-neighbour (overdue first) and price that sequence."""
    result = await db.execute(
        pending_orders_query()
        .where(DeliveryOrder.scheduled_date <= planning_date)
        .order_by(DeliveryOrder.po_date, DeliveryOrder.scheduled_date, DeliveryOrder.id)
    )
    orders = list(result.unique().scalars().all())
    if not orders:
        return None

    by_id = {order.id: order for order in orders}
    sequence = order_stops(stops_from_orders(orders, planning_date), OrderingPolicy.NEAREST_NEIGHBOR)
    route = measure_route(sequence)
    pricing = price_stops(route.stops)

    stops = []
    for index, (charge, leg) in enumerate(zip(pricing.charges, route.leg_distances)):
        order = by_id[charge.stop.order_id]
        stops.append(RouteStop(
            **_planned_stop_fields(order, charge),
            route_sequence=index + 1,
            leg_distance_km=float(leg),
            cutoff_time=order.client.cutoff_time if order.client else None,
            days_until_due=(order.scheduled_date - planning_date).days,
        ))

    return RoutePlanGroup(
        order_count=len(orders),
        total_items=sum(order.total_items or 0 for order in orders),
        total_quantity=sum(order.total_quantity or 0 for order in orders),
        total_amount=float(_sum_amount(orders)),
        estimated_cost=float(pricing.total),
        total_route_km=round(float(route.total_route_km), 1),
        max_distance=float(route.max_distance),
        overdue_count=sum(1 for stop in stops if stop.is_overdue),
        oldest_po_date=min(order.po_date for order in orders),
        zone_summary=_zone_summary(orders),
        orders=stops,
    )


async def upcoming_orders(db: AsyncSession, planning_date: date) -> List[UpcomingDay]:
    """Pending orders due within the upcoming window, one priced group per scheduled date."""
    window_end = planning_date + timedelta(days=settings.UPCOMING_WINDOW_DAYS)
    result = await db.execute(
        pending_orders_query()
        .where(DeliveryOrder.scheduled_date > planning_date, DeliveryOrder.scheduled_date <= window_end)
        .order_by(DeliveryOrder.scheduled_date, DeliveryOrder.po_date, DeliveryOrder.id)
    )
    groups: Dict[date, List[DeliveryOrder]] = OrderedDict()
    for order in result.unique().scalars().all():
        groups.setdefault(order.scheduled_date, []).append(order)

    days = []
    for scheduled, orders in groups.items():
        by_id = {order.id: order for order in orders}
        pricing = price_stops(order_stops(stops_from_orders(orders, planning_date), OrderingPolicy.PO_DATE))
        zone_ids = {order.client.zone_id for order in orders if order.client and order.client.zone_id}
        days.append(UpcomingDay(
            scheduled_date=scheduled,
            day_name=scheduled.strftime("%A"),
            days_from_now=(scheduled - planning_date).days,
            order_count=len(orders),
            total_amount=float(_sum_amount(orders)),
            total_rate=float(pricing.total),
            zone_count=len(zone_ids),
            orders=[PlannedStop(**_planned_stop_fields(by_id[c.stop.order_id], c)) for c in pricing.charges],
        ))
    return days


async def route_planner_view(db: AsyncSession, planning_date: date) -> RoutePlannerResponse:
    route = await plan_route(db, planning_date)
    upcoming = await upcoming_orders(db, planning_date)

    summary = RouteSummary()
    if route:
        summary = RouteSummary(
            total_pending=route.order_count,
            total_zones=len({stop.zone_id for stop in route.orders if stop.zone_id is not None}),
            total_estimated_cost=route.estimated_cost,
            total_route_km=route.total_route_km,
            overdue_orders=route.overdue_count,
            due_today=sum(1 for stop in route.orders if stop.scheduled_date == planning_date),
            oldest_po=route.oldest_po_date,
        )
    return RoutePlannerResponse(selected_date=planning_date, route=route, upcoming=upcoming, summary=summary)


async def calculate_route(db: AsyncSession, order_ids: Sequence[int]) -> CalculateRouteResponse:
    """Price a chosen set of orders grouped by zone, oldest PO first within each zone."""
    order_ids = list(dict.fromkeys(order_ids))
    if not order_ids:
        raise HTTPException(status_code=400, detail="No orders selected")

    result = await db.execute(select(DeliveryOrder).where(DeliveryOrder.id.in_(order_ids)))
    by_id = {order.id: order for order in result.unique().scalars().all()}
    missing = [order_id for order_id in order_ids if order_id not in by_id]
    if missing:
        raise HTTPException(status_code=404, detail=f"Delivery orders not found: {missing}")

    stops = order_stops(stops_from_orders(by_id.values()), OrderingPolicy.ZONE_THEN_PO_DATE)
    pricing = price_stops(stops)

    route = []
    for index, (charge, cumulative) in enumerate(zip(pricing.charges, pricing.cumulative_costs())):
        order = by_id[charge.stop.order_id]
        client = order.client
        route.append(CalculatedStop(
            sequence=index + 1,
            order_id=order.id,
            po_number=order.po_number,
            po_date=order.po_date,
            client_code=client.code if client else "",
            area=client.area.name if client and client.area else None,
            zone=client.zone.name if client and client.zone else None,
            distance_km=float(charge.stop.distance),
            drop_cost=float(charge.cost),
            cumulative_cost=float(cumulative),
        ))

    return CalculateRouteResponse(
        route=route,
        total_cost=float(pricing.total),
        total_orders=len(route),
        zones_covered=len({stop.zone_id for stop in stops}),
    )
