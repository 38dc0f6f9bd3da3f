"""
Batch lifecycle

(unassigned) --allocate--> planned --start_delivery--> in_transit --complete_batch--> completed
planned --remove_from_batch--> planned (recomputed) or deleted when the last member leaves
planned --delete_batch--> deleted, every member released

Every operation validates before writing and commits exactly once. Any
failure after the first write rolls the whole transaction back.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from delivery_planner.core.logging_config import get_logger
from delivery_planner.models.delivery_batch import BATCH_NUMBER_PREFIX, DeliveryBatch
from delivery_planner.models.delivery_order import DeliveryOrder
from delivery_planner.models.vehicle import VEHICLE_TYPE_LABELS, Vehicle
from delivery_planner.services.audit import batch_snapshot, order_snapshot, record_audit
from delivery_planner.services.models import PricingResult
from delivery_planner.services.ordering import OrderingPolicy, order_stops
from delivery_planner.services.pricing import price_stops
from delivery_planner.services.stops import stops_from_orders

logger = get_logger(__name__)


async def generate_batch_number(db: AsyncSession, planned_date: date) -> str:
    """BTH-yymmdd-NNN, NNN is one above the highest suffix already used for planned_date.

    Must run in the same transaction as the batch insert. The unique
    constraint on batch_number rejects a concurrent duplicate.
    """
    date_str = planned_date.strftime("%y%m%d")
    pattern = f"{BATCH_NUMBER_PREFIX}-{date_str}-%"
    result = await db.execute(
        select(DeliveryBatch.batch_number).where(DeliveryBatch.batch_number.like(pattern))
    )

    # numeric max: past 999 the suffix widens and string order no longer holds
    used = [int(suffix) for suffix in (no.rsplit("-", 1)[-1] for no in result.scalars()) if suffix.isdigit()]
    seq = max(used, default=0) + 1

    return f"{BATCH_NUMBER_PREFIX}-{date_str}-{seq:03d}"


def apply_pricing(orders: Sequence[DeliveryOrder], pricing: PricingResult) -> None:
    """Write per-stop charges onto the orders they were computed for."""
    by_id = {order.id: order for order in orders}
    for charge in pricing.charges:
        order = by_id[charge.stop.order_id]
        order.base_rate = charge.base_rate
        order.additional_rate_type = charge.rate_type
        order.additional_rate = charge.additional_rate
        order.total_rate = charge.cost


def _max_distance(orders: Sequence[DeliveryOrder]) -> Decimal:
    return max((order.client.distance for order in orders if order.client is not None), default=Decimal("0"))


async def load_batch(db: AsyncSession, batch_id: int, *, lock: bool = False) -> DeliveryBatch:
    query = select(DeliveryBatch).where(DeliveryBatch.id == batch_id)
    if lock:
        query = query.with_for_update(of=DeliveryBatch)
    result = await db.execute(query)
    batch = result.unique().scalar_one_or_none()
    if not batch:
        raise HTTPException(status_code=404, detail=f"Batch {batch_id} not found")
    return batch


async def load_batch_members(db: AsyncSession, batch_id: int, *, lock: bool = False) -> List[DeliveryOrder]:
    query = (
        select(DeliveryOrder)
        .where(DeliveryOrder.batch_id == batch_id)
        .order_by(DeliveryOrder.id)
    )
    if lock:
        query = query.with_for_update(of=DeliveryOrder)
    result = await db.execute(query)
    return list(result.unique().scalars().all())


def _require_status(batch: DeliveryBatch, expected: str, action: str) -> None:
    if batch.status != expected:
        raise HTTPException(
            status_code=409,
            detail=f"Batch {batch.batch_number} is '{batch.status}', {action} requires '{expected}'",
        )


async def allocate(
    db: AsyncSession,
    *,
    order_ids: Sequence[int],
    planned_date: date,
    vehicle_type: str,
    vehicle_id: Optional[int] = None,
    notes: Optional[str] = None,
    actor_id: Optional[int] = None,
) -> DeliveryBatch:
    """Create a planned batch from unassigned orders.

    The submitted order_ids order is the pricing order, so the committed
    totals match the preview the caller priced with the same sequence.
    """
    order_ids = list(order_ids)
    if not order_ids:
        raise HTTPException(status_code=400, detail="No orders selected")
    if len(set(order_ids)) != len(order_ids):
        raise HTTPException(status_code=400, detail="Duplicate order ids in selection")
    if vehicle_type not in VEHICLE_TYPE_LABELS:
        raise HTTPException(status_code=400, detail=f"Unknown vehicle type: {vehicle_type}")

    try:
        if vehicle_id is not None:
            vehicle = await db.get(Vehicle, vehicle_id)
            if not vehicle:
                raise HTTPException(status_code=404, detail=f"Vehicle {vehicle_id} not found")

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

        taken = [order.po_number for order in orders if order.batch_id is not None or order.status != "pending"]
        if taken:
            raise HTTPException(status_code=409, detail=f"Orders already allocated or not pending: {taken}")
        pickups = [order.po_number for order in orders if order.is_pickup]
        if pickups:
            raise HTTPException(status_code=400, detail=f"Pickup orders cannot be allocated: {pickups}")

        zone = orders[0].client.zone if orders[0].client else None
        if zone is None:
            raise HTTPException(status_code=400, detail="Could not determine zone from the first selected order")

        stops = order_stops(stops_from_orders(orders, planned_date), OrderingPolicy.SUBMITTED)
        pricing = price_stops(stops)

        batch = DeliveryBatch(
            batch_number=await generate_batch_number(db, planned_date),
            planned_date=planned_date,
            zone_id=zone.id,
            vehicle_id=vehicle_id,
            vehicle_type=vehicle_type,
            order_count=len(orders),
            total_items=sum(order.total_items or 0 for order in orders),
            total_value=sum((Decimal(str(order.total_amount or 0)) for order in orders), Decimal("0")),
            total_rate=pricing.total,
            total_distance_km=_max_distance(orders) * 2,
            status="planned",
            notes=notes,
            created_by=actor_id,
        )
        db.add(batch)
        await db.flush()

        for order in orders:
            order.batch_id = batch.id
            order.status = "confirmed"
        apply_pricing(orders, pricing)

        record_audit(
            db,
            action="allocate",
            resource_type="batch",
            resource_id=batch.id,
            resource_name=batch.batch_number,
            description=f"Allocated {len(orders)} orders to {batch.batch_number}",
            new_value={**batch_snapshot(batch), "order_ids": order_ids},
            user_id=actor_id,
        )

        await db.commit()
    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.exception("Allocation failed for orders %s", order_ids)
        raise HTTPException(status_code=500, detail=f"Allocation failed: {str(e)}")

    logger.info(
        "Batch %s allocated: %d orders, total rate %s, vehicle %s",
        batch.batch_number, batch.order_count, batch.total_rate, batch.vehicle_type,
    )
    return batch


async def remove_from_batch(
    db: AsyncSession,
    order_id: int,
    *,
    actor_id: Optional[int] = None,
) -> Optional[DeliveryBatch]:
    """Release one order from its planned batch.

    Remaining members are repriced by ascending distance from the depot.
    Returns the updated batch, or None when the batch was deleted because
    it lost its last member.
    """
    try:
        result = await db.execute(
            select(DeliveryOrder).where(DeliveryOrder.id == order_id).with_for_update(of=DeliveryOrder)
        )
        order = result.unique().scalar_one_or_none()
        if not order:
            raise HTTPException(status_code=404, detail=f"Delivery order {order_id} not found")
        if order.batch_id is None:
            raise HTTPException(status_code=400, detail="Order is not assigned to any batch")

        batch = await load_batch(db, order.batch_id, lock=True)
        _require_status(batch, "planned", "removing an order")

        before = order_snapshot(order)
        order.release()
        await db.flush()

        remaining = await load_batch_members(db, batch.id, lock=True)
        if not remaining:
            batch_number = batch.batch_number
            batch_id = batch.id
            await db.delete(batch)
            record_audit(
                db,
                action="remove",
                resource_type="order",
                resource_id=order.id,
                resource_name=order.po_number,
                description=f"Removed {order.po_number} from {batch_number}; empty batch deleted",
                old_value={**before, "batch_number": batch_number},
                new_value=order_snapshot(order),
                user_id=actor_id,
            )
            await db.commit()
            logger.info("Order %s removed, batch %s (id=%s) deleted", order.po_number, batch_number, batch_id)
            return None

        stops = order_stops(stops_from_orders(remaining), OrderingPolicy.DISTANCE_ASC)
        pricing = price_stops(stops)
        apply_pricing(remaining, pricing)

        batch.order_count = len(remaining)
        batch.total_items = sum(member.total_items or 0 for member in remaining)
        batch.total_value = sum((Decimal(str(member.total_amount or 0)) for member in remaining), Decimal("0"))
        batch.total_rate = pricing.total

        record_audit(
            db,
            action="remove",
            resource_type="order",
            resource_id=order.id,
            resource_name=order.po_number,
            description=f"Removed {order.po_number} from {batch.batch_number}",
            old_value={**before, "batch_number": batch.batch_number},
            new_value={**order_snapshot(order), "batch": batch_snapshot(batch)},
            user_id=actor_id,
        )
        await db.commit()
    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.exception("Removing order %s from its batch failed", order_id)
        raise HTTPException(status_code=500, detail=f"Remove from batch failed: {str(e)}")

    logger.info("Order %s removed from %s, total rate now %s", order.po_number, batch.batch_number, batch.total_rate)
    return batch


async def delete_batch(db: AsyncSession, batch_id: int, *, actor_id: Optional[int] = None) -> int:
    """Release every member of a planned batch and delete it. Returns the number of released orders."""
    try:
        batch = await load_batch(db, batch_id, lock=True)
        _require_status(batch, "planned", "delete")

        members = await load_batch_members(db, batch.id, lock=True)
        snapshot = batch_snapshot(batch)
        for member in members:
            member.release()
        await db.flush()

        await db.delete(batch)
        record_audit(
            db,
            action="delete",
            resource_type="batch",
            resource_id=batch_id,
            resource_name=snapshot["batch_number"],
            description=f"Deleted {snapshot['batch_number']}, released {len(members)} orders",
            old_value={**snapshot, "order_ids": [member.id for member in members]},
            user_id=actor_id,
        )
        await db.commit()
    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.exception("Deleting batch %s failed", batch_id)
        raise HTTPException(status_code=500, detail=f"Delete batch failed: {str(e)}")

    logger.info("Batch %s deleted, %d orders released", snapshot["batch_number"], len(members))
    return len(members)


async def start_delivery(db: AsyncSession, batch_id: int, *, actor_id: Optional[int] = None) -> DeliveryBatch:
    """planned -> in_transit, cascaded to members. Totals are left alone."""
    try:
        batch = await load_batch(db, batch_id, lock=True)
        _require_status(batch, "planned", "start delivery")

        members = await load_batch_members(db, batch.id, lock=True)
        batch.status = "in_transit"
        for member in members:
            member.status = "in_transit"

        record_audit(
            db,
            action="start",
            resource_type="batch",
            resource_id=batch.id,
            resource_name=batch.batch_number,
            description=f"{batch.batch_number} is now in transit",
            old_value={"status": "planned"},
            new_value={"status": "in_transit"},
            user_id=actor_id,
        )
        await db.commit()
    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.exception("Starting delivery for batch %s failed", batch_id)
        raise HTTPException(status_code=500, detail=f"Start delivery failed: {str(e)}")

    logger.info("Batch %s in transit (%d orders)", batch.batch_number, len(members))
    return batch


async def complete_batch(
    db: AsyncSession,
    batch_id: int,
    delivery_date: date,
    *,
    actor_id: Optional[int] = None,
) -> DeliveryBatch:
    """in_transit -> completed; each member is on_time or delayed against its scheduled date."""
    try:
        batch = await load_batch(db, batch_id, lock=True)
        _require_status(batch, "in_transit", "complete")

        members = await load_batch_members(db, batch.id, lock=True)
        batch.status = "completed"
        batch.actual_date = delivery_date
        outcome = {"on_time": 0, "delayed": 0}
        for member in members:
            member.actual_date = delivery_date
            member.status = "on_time" if delivery_date <= member.scheduled_date else "delayed"
            outcome[member.status] += 1

        record_audit(
            db,
            action="complete",
            resource_type="batch",
            resource_id=batch.id,
            resource_name=batch.batch_number,
            description=f"{batch.batch_number} completed with {len(members)} orders",
            old_value={"status": "in_transit"},
            new_value={"status": "completed", "actual_date": delivery_date.isoformat(), **outcome},
            user_id=actor_id,
        )
        await db.commit()
    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.exception("Completing batch %s failed", batch_id)
        raise HTTPException(status_code=500, detail=f"Complete batch failed: {str(e)}")

    logger.info(
        "Batch %s completed on %s: %d on time, %d delayed",
        batch.batch_number, delivery_date, outcome["on_time"], outcome["delayed"],
    )
    return batch
