"""
Vehicle catalog API
"""
from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from delivery_planner.core.deps import get_db
from delivery_planner.models import Vehicle
from delivery_planner.schemas.vehicle import VehicleListResponse
from delivery_planner.services.responses import build_vehicle_response

router = APIRouter()


@router.get("/", response_model=VehicleListResponse)
async def list_vehicles(
    *,
    db: AsyncSession = Depends(get_db),
    vehicle_type: Optional[str] = Query(None, alias="type", description="l300 / truck"),
    is_active: Optional[bool] = Query(True, description="Only vehicles available for dispatch")) -> Any:
    """List vehicles"""
    query = select(Vehicle)
    count_query = select(func.count(Vehicle.id))

    if vehicle_type:
        query = query.where(Vehicle.type == vehicle_type)
        count_query = count_query.where(Vehicle.type == vehicle_type)

    if is_active is not None:
        query = query.where(Vehicle.is_active == is_active)
        count_query = count_query.where(Vehicle.is_active == is_active)

    query = query.order_by(Vehicle.type, Vehicle.plate_number)

    result = await db.execute(query)
    vehicles = result.scalars().all()

    count_result = await db.execute(count_query)
    total = count_result.scalar() or 0

    return VehicleListResponse(
        data=[build_vehicle_response(v) for v in vehicles],
        total=total
    )
