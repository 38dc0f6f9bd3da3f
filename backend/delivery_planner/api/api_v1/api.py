"""V1 API router (no authentication)"""
from fastapi import APIRouter

from delivery_planner.api.api_v1.endpoints import (
    allocation_planner, route_planner, delivery_orders, batches, vehicles, audit_logs
)

api_router = APIRouter()

# planning
api_router.include_router(allocation_planner.router, prefix="/allocation-planner", tags=["Allocation planner"])
api_router.include_router(route_planner.router, prefix="/route-planner", tags=["Route planner"])

# records
api_router.include_router(delivery_orders.router, prefix="/delivery-orders", tags=["Delivery orders"])
api_router.include_router(batches.router, prefix="/batches", tags=["Batches"])
api_router.include_router(vehicles.router, prefix="/vehicles", tags=["Vehicles"])

# system
api_router.include_router(audit_logs.router, prefix="/audit-logs", tags=["Audit logs"])
