"""
Delivery batch API (read only; lifecycle changes go through the allocation planner)
"""
from datetime import date
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from delivery_planner.core.deps import get_db
from delivery_planner.models import DeliveryBatch, DeliveryOrder
from delivery_planner.schemas.delivery_batch import BatchResponse, BatchListResponse
from delivery_planner.services.batch_lifecycle import load_batch, load_batch_members
from delivery_planner.services.responses import build_batch_response

router = APIRouter()


@router.get("/", response_model=BatchListResponse)
async def list_batches(
    *,
    db: AsyncSession = Depends(get_db),
    planned_date: Optional[date] = Query(None, description="Filter by planned date"),
    status: Optional[str] = Query(None, description="Filter by status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200)) -> Any:
    """List batches, newest planned date first"""
    query = select(DeliveryBatch)
    count_query = select(func.count(DeliveryBatch.id))

    if planned_date:
        query = query.where(DeliveryBatch.planned_date == planned_date)
        count_query = count_query.where(DeliveryBatch.planned_date == planned_date)
    if status:
        query = query.where(DeliveryBatch.status == status)
        count_query = count_query.where(DeliveryBatch.status == status)

    query = query.order_by(DeliveryBatch.planned_date.desc(), DeliveryBatch.batch_number).offset(skip).limit(limit)
    result = await db.execute(query)
    batches = result.unique().scalars().all()

    members: Dict[int, List[DeliveryOrder]] = {batch.id: [] for batch in batches}
    if members:
        result = await db.execute(
            select(DeliveryOrder).where(DeliveryOrder.batch_id.in_(list(members))).order_by(DeliveryOrder.id)
        )
        for order in result.unique().scalars().all():
            members[order.batch_id].append(order)

    count_result = await db.execute(count_query)
    total = count_result.scalar() or 0

    return BatchListResponse(
        data=[build_batch_response(batch, members[batch.id]) for batch in batches],
        total=total
    )


@router.get("/{batch_id}", response_model=BatchResponse)
async def get_batch(
    *,
    db: AsyncSession = Depends(get_db),
    batch_id: int) -> Any:
    batch = await load_batch(db, batch_id)
    return build_batch_response(batch, await load_batch_members(db, batch_id))
