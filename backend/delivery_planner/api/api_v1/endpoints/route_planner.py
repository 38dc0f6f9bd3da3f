"""
Route planner API
- nearest-neighbour route preview for a date, with the upcoming window
- zone-grouped cost calculation for a chosen set
- direct delivery confirmation (single and bulk)
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from delivery_planner.core.deps import get_db
from delivery_planner.schemas.planner import (
    CalculateRouteRequest,
    CalculateRouteResponse,
    ConfirmBulkDelivery,
    ConfirmDelivery,
    ConfirmResponse,
    RoutePlannerResponse,
)
from delivery_planner.services.delivery_confirmation import confirm_bulk_delivery, confirm_delivery
from delivery_planner.services.planner import calculate_route, route_planner_view

router = APIRouter()


def _decimal(value: Optional[float]) -> Optional[Decimal]:
    return Decimal(str(value)) if value is not None else None


@router.get("/", response_model=RoutePlannerResponse)
async def get_route_planner(
    *,
    db: AsyncSession = Depends(get_db),
    planning_date: Optional[date] = Query(None, alias="date", description="Planning date, defaults to today")) -> Any:
    return await route_planner_view(db, planning_date or date.today())


@router.post("/calculate", response_model=CalculateRouteResponse)
async def calculate(
    *,
    db: AsyncSession = Depends(get_db),
    calculate_in: CalculateRouteRequest) -> Any:
    """Drop costs grouped by zone, oldest PO first within each zone"""
    return await calculate_route(db, calculate_in.order_ids)


@router.post("/confirm/{order_id}", response_model=ConfirmResponse)
async def confirm_single(
    *,
    db: AsyncSession = Depends(get_db),
    order_id: int,
    confirm_in: Optional[ConfirmDelivery] = None) -> Any:
    """Confirm one unbatched order at the full base rate"""
    confirm_in = confirm_in or ConfirmDelivery()
    order = await confirm_delivery(
        db,
        order_id,
        delivery_date=confirm_in.delivery_date,
        base_rate=_decimal(confirm_in.base_rate),
        drop_cost=_decimal(confirm_in.drop_cost),
    )
    return ConfirmResponse(
        message=f"Delivery confirmed for PO# {order.po_number}",
        confirmed_count=1,
        total_rate=float(order.total_rate or 0),
        order_ids=[order.id],
    )


@router.post("/confirm-bulk", response_model=ConfirmResponse)
async def confirm_bulk(
    *,
    db: AsyncSession = Depends(get_db),
    bulk_in: ConfirmBulkDelivery) -> Any:
    """Confirm several unbatched orders; list order is the pricing order"""
    orders = await confirm_bulk_delivery(
        db,
        [(entry.id, _decimal(entry.base_rate)) for entry in bulk_in.orders],
        delivery_date=bulk_in.delivery_date,
    )
    return ConfirmResponse(
        message=f"{len(orders)} delivery order(s) confirmed successfully",
        confirmed_count=len(orders),
        total_rate=float(sum((Decimal(str(order.total_rate or 0)) for order in orders), Decimal("0"))),
        order_ids=[order.id for order in orders],
    )
