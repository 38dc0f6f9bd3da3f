"""
Delivery order API
"""
from decimal import Decimal
from typing import Any, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from delivery_planner.core.deps import get_db
from delivery_planner.core.logging_config import get_logger
from delivery_planner.models import Client, DeliveryOrder, DeliveryOrderItem
from delivery_planner.schemas.delivery_order import (
    DeliveryOrderCreate,
    DeliveryOrderResponse,
    DeliveryOrderListResponse)
from delivery_planner.services.audit import record_audit
from delivery_planner.services.responses import build_order_response

router = APIRouter()
logger = get_logger(__name__)


async def load_order(db: AsyncSession, order_id: int) -> Optional[DeliveryOrder]:
    result = await db.execute(select(DeliveryOrder).where(DeliveryOrder.id == order_id))
    return result.unique().scalar_one_or_none()


@router.get("/", response_model=DeliveryOrderListResponse)
async def list_orders(
    *,
    db: AsyncSession = Depends(get_db),
    status: Optional[str] = Query(None, description="Filter by status"),
    batch_id: Optional[int] = Query(None, description="Filter by batch"),
    unassigned_only: bool = Query(False, description="Only orders without a batch"),
    sort: str = Query("fifo", pattern="^(fifo|newest)$", description="fifo = oldest PO first"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500)) -> Any:
    """List delivery orders"""
    query = select(DeliveryOrder)
    count_query = select(func.count(DeliveryOrder.id))

    conditions = []
    if status:
        conditions.append(DeliveryOrder.status == status)
    if batch_id is not None:
        conditions.append(DeliveryOrder.batch_id == batch_id)
    if unassigned_only:
        conditions.append(DeliveryOrder.batch_id.is_(None))

    if conditions:
        query = query.where(*conditions)
        count_query = count_query.where(*conditions)

    if sort == "newest":
        query = query.order_by(DeliveryOrder.po_date.desc(), DeliveryOrder.id.desc())
    else:
        query = query.order_by(DeliveryOrder.po_date, DeliveryOrder.id)
    query = query.offset(skip).limit(limit)

    result = await db.execute(query)
    orders = result.unique().scalars().all()

    count_result = await db.execute(count_query)
    total = count_result.scalar() or 0

    return DeliveryOrderListResponse(
        data=[build_order_response(order) for order in orders],
        total=total
    )


@router.post("/", response_model=DeliveryOrderResponse)
async def create_order(
    *,
    db: AsyncSession = Depends(get_db),
    order_in: DeliveryOrderCreate) -> Any:
    """Create an unassigned delivery order with its line items"""
    client = await db.get(Client, order_in.client_id)
    if not client:
        raise HTTPException(status_code=404, detail=f"Client {order_in.client_id} not found")
    if order_in.scheduled_date < order_in.po_date:
        raise HTTPException(status_code=400, detail="Scheduled date cannot be before the PO date")

    try:
        order = DeliveryOrder(
            po_number=order_in.po_number,
            po_date=order_in.po_date,
            scheduled_date=order_in.scheduled_date,
            client_id=client.id,
            delivery_type=order_in.delivery_type,
            remarks=order_in.remarks,
            status="pending",
            additional_rate_type="none",
            base_rate=Decimal("0"),
            additional_rate=Decimal("0"),
            total_rate=Decimal("0"),
            items=[],
        )
        for item_in in order_in.items:
            item = DeliveryOrderItem(
                part_number=item_in.part_number,
                description=item_in.description,
                unit_price=Decimal(str(item_in.unit_price)),
                quantity=item_in.quantity,
            )
            item.total_price = item.calculate_total()
            order.items.append(item)
        order.recalculate_totals()

        db.add(order)
        await db.flush()
        record_audit(
            db,
            action="create",
            resource_type="order",
            resource_id=order.id,
            resource_name=order.po_number,
            description=f"Created delivery order {order.po_number}",
            new_value={"client_id": client.id, "total_amount": float(order.total_amount or 0)},
        )
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.exception("Creating delivery order %s failed", order_in.po_number)
        raise HTTPException(status_code=500, detail=f"Create delivery order failed: {str(e)}")

    order_id = order.id
    db.expire_all()
    return build_order_response(await load_order(db, order_id))


@router.get("/{order_id}", response_model=DeliveryOrderResponse)
async def get_order(
    *,
    db: AsyncSession = Depends(get_db),
    order_id: int) -> Any:
    order = await load_order(db, order_id)
    if not order:
        raise HTTPException(status_code=404, detail=f"Delivery order {order_id} not found")
    return build_order_response(order)
