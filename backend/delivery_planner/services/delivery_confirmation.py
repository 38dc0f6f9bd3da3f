"""
Delivery confirmation outside of batches

- confirm_delivery: one order, charged the supplied base rate as a one-stop sequence
- confirm_bulk_delivery: a caller-ordered list priced by area adjacency only;
  repeat clients are charged like any other drop here
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from delivery_planner.core.logging_config import get_logger
from delivery_planner.models.delivery_order import DeliveryOrder
from delivery_planner.services.audit import order_snapshot, record_audit
from delivery_planner.services.batch_lifecycle import apply_pricing
from delivery_planner.services.ordering import OrderingPolicy, order_stops
from delivery_planner.services.pricing import price_stops_by_adjacency
from delivery_planner.services.stops import stop_from_order

logger = get_logger(__name__)


def _delivery_status(delivery_date: date, order: DeliveryOrder) -> str:
    return "on_time" if delivery_date <= order.scheduled_date else "delayed"


def _check_confirmable(order: DeliveryOrder) -> None:
    if order.batch_id is not None:
        raise HTTPException(
            status_code=409,
            detail=f"Order {order.po_number} belongs to a batch; complete the batch instead",
        )
    if order.status != "pending":
        raise HTTPException(status_code=409, detail=f"Order {order.po_number} is already '{order.status}'")


async def confirm_delivery(
    db: AsyncSession,
    order_id: int,
    *,
    delivery_date: Optional[date] = None,
    base_rate: Optional[Decimal] = None,
    drop_cost: Optional[Decimal] = None,
    actor_id: Optional[int] = None,
) -> DeliveryOrder:
    """Complete a single unbatched order.

    base_rate defaults to the client's zone rate and drop_cost to base_rate.
    No discount branch applies.
    """
    delivery_date = delivery_date or date.today()
    try:
        result = await db.execute(
            select(DeliveryOrder).where(DeliveryOrder.id == order_id).with_for_update(of=DeliveryOrder)
        )
        order = result.unique().scalar_one_or_none()
        if not order:
            raise HTTPException(status_code=404, detail=f"Delivery order {order_id} not found")
        _check_confirmable(order)

        if base_rate is None:
            base_rate = order.client.base_rate if order.client else Decimal("0")
        base_rate = Decimal(str(base_rate))
        drop_cost = Decimal(str(drop_cost)) if drop_cost is not None else base_rate

        before = order_snapshot(order)
        order.actual_date = delivery_date
        order.status = _delivery_status(delivery_date, order)
        order.base_rate = base_rate
        order.additional_rate_type = "none"
        order.additional_rate = Decimal("0")
        order.total_rate = drop_cost

        record_audit(
            db,
            action="confirm",
            resource_type="order",
            resource_id=order.id,
            resource_name=order.po_number,
            description=f"Delivery confirmed for PO# {order.po_number}",
            old_value=before,
            new_value={**order_snapshot(order), "actual_date": delivery_date.isoformat()},
            user_id=actor_id,
        )
        await db.commit()
    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.exception("Confirming delivery for order %s failed", order_id)
        raise HTTPException(status_code=500, detail=f"Confirm delivery failed: {str(e)}")

    logger.info("Order %s delivered %s (%s), drop cost %s", order.po_number, delivery_date, order.status, drop_cost)
    return order


async def confirm_bulk_delivery(
    db: AsyncSession,
    entries: Sequence[Tuple[int, Optional[Decimal]]],
    *,
    delivery_date: Optional[date] = None,
    actor_id: Optional[int] = None,
) -> List[DeliveryOrder]:
    """Complete several unbatched orders in the submitted order.

    ``entries`` is a sequence of (order_id, base_rate). Only the first entry's
    base rate is charged; it falls back to that client's zone rate when None.
    Any unknown or unconfirmable order aborts the whole call.
    """
    entries = list(entries)
    if not entries:
        raise HTTPException(status_code=400, detail="No orders selected")
    order_ids = [order_id for order_id, _ in entries]
    if len(set(order_ids)) != len(order_ids):
        raise HTTPException(status_code=400, detail="Duplicate order ids in selection")

    delivery_date = delivery_date or date.today()
    try:
        result = await db.execute(
            select(DeliveryOrder)
            .where(DeliveryOrder.id.in_(order_ids))
            .with_for_update(of=DeliveryOrder)
        )
        found = {order.id: order for order in result.unique().scalars().all()}
        missing = [order_id for order_id in order_ids if order_id not in found]
        if missing:
            raise HTTPException(status_code=404, detail=f"Delivery orders not found: {missing}")

        orders = [found[order_id] for order_id in order_ids]
        for order in orders:
            _check_confirmable(order)

        stops = [stop_from_order(order) for order in orders]
        first_base_rate = entries[0][1]
        if first_base_rate is not None:
            stops[0] = replace(stops[0], zone_base_rate=Decimal(str(first_base_rate)))
        pricing = price_stops_by_adjacency(order_stops(stops, OrderingPolicy.SUBMITTED))

        for order in orders:
            order.actual_date = delivery_date
            order.status = _delivery_status(delivery_date, order)
        apply_pricing(orders, pricing)

        record_audit(
            db,
            action="bulk_confirm",
            resource_type="order",
            resource_id=None,
            resource_name=", ".join(order.po_number for order in orders)[:100],
            description=f"{len(orders)} delivery order(s) confirmed",
            new_value={
                "order_ids": order_ids,
                "actual_date": delivery_date.isoformat(),
                "total_rate": float(pricing.total),
            },
            user_id=actor_id,
        )
        await db.commit()
    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.exception("Bulk confirmation failed for orders %s", order_ids)
        raise HTTPException(status_code=500, detail=f"Bulk confirm failed: {str(e)}")

    logger.info("%d orders confirmed on %s, total drop cost %s", len(orders), delivery_date, pricing.total)
    return orders
