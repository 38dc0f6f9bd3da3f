"""
Allocation planner API
- unallocated pool preview for a date
- batch lifecycle: allocate, remove member, delete, start, complete
"""

from datetime import date
from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from delivery_planner.core.deps import get_db
from delivery_planner.schemas.delivery_batch import BatchAllocate, BatchComplete, BatchActionResponse
from delivery_planner.schemas.planner import AllocationPlannerResponse
from delivery_planner.services import batch_lifecycle
from delivery_planner.services.batch_lifecycle import load_batch, load_batch_members
from delivery_planner.services.planner import allocation_planner_view
from delivery_planner.services.responses import build_batch_response

router = APIRouter()


async def _batch_payload(db: AsyncSession, batch_id: int):
    # reload after commit so relationships reflect the committed rows
    db.expire_all()
    batch = await load_batch(db, batch_id)
    members = await load_batch_members(db, batch_id)
    return build_batch_response(batch, members)


@router.get("/", response_model=AllocationPlannerResponse)
async def get_allocation_planner(
    *,
    db: AsyncSession = Depends(get_db),
    planning_date: Optional[date] = Query(None, alias="date", description="Planning date, defaults to today")) -> Any:
    """Unallocated orders due by the date, plus that date's open batches"""
    return await allocation_planner_view(db, planning_date or date.today())


@router.post("/allocate", response_model=BatchActionResponse)
async def allocate_orders(
    *,
    db: AsyncSession = Depends(get_db),
    allocate_in: BatchAllocate) -> Any:
    """Create a batch; order_ids order is the pricing order"""
    batch = await batch_lifecycle.allocate(
        db,
        order_ids=allocate_in.order_ids,
        planned_date=allocate_in.planned_date,
        vehicle_type=allocate_in.vehicle_type,
        vehicle_id=allocate_in.vehicle_id,
        notes=allocate_in.notes,
    )
    return BatchActionResponse(
        message=f"Batch created successfully with {batch.order_count} orders",
        batch=await _batch_payload(db, batch.id),
    )


@router.post("/orders/{order_id}/remove", response_model=BatchActionResponse)
async def remove_order_from_batch(
    *,
    db: AsyncSession = Depends(get_db),
    order_id: int) -> Any:
    """Release one order; the batch is repriced or deleted when emptied"""
    batch = await batch_lifecycle.remove_from_batch(db, order_id)
    if batch is None:
        return BatchActionResponse(message="Order removed from batch; empty batch deleted", released_orders=1)
    return BatchActionResponse(
        message="Order removed from batch",
        batch=await _batch_payload(db, batch.id),
        released_orders=1,
    )


@router.delete("/batches/{batch_id}", response_model=BatchActionResponse)
async def delete_batch(
    *,
    db: AsyncSession = Depends(get_db),
    batch_id: int) -> Any:
    """Delete a planned batch and release its orders"""
    released = await batch_lifecycle.delete_batch(db, batch_id)
    return BatchActionResponse(message="Batch deleted and orders released", released_orders=released)


@router.post("/batches/{batch_id}/start", response_model=BatchActionResponse)
async def start_delivery(
    *,
    db: AsyncSession = Depends(get_db),
    batch_id: int) -> Any:
    batch = await batch_lifecycle.start_delivery(db, batch_id)
    return BatchActionResponse(
        message=f"Batch {batch.batch_number} is now in transit",
        batch=await _batch_payload(db, batch.id),
    )


@router.post("/batches/{batch_id}/complete", response_model=BatchActionResponse)
async def complete_batch(
    *,
    db: AsyncSession = Depends(get_db),
    batch_id: int,
    complete_in: Optional[BatchComplete] = None) -> Any:
    """Complete an in-transit batch; delivery_date defaults to today"""
    delivery_date = (complete_in.delivery_date if complete_in else None) or date.today()
    batch = await batch_lifecycle.complete_batch(db, batch_id, delivery_date)
    return BatchActionResponse(
        message=f"Batch {batch.batch_number} completed with {batch.order_count} orders",
        batch=await _batch_payload(db, batch.id),
    )
