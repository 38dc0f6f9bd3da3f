"""
Allocation planner and route planner schemas
"""
from datetime import date
from typing import Optional, List
from pydantic import BaseModel, Field

from delivery_planner.schemas.delivery_batch import BatchResponse
from delivery_planner.schemas.vehicle import VehicleResponse


class ZoneSummary(BaseModel):
    name: str
    code: str = "-"
    count: int


class PlannedStop(BaseModel):
    """One pending order with its previewed drop cost"""
    id: int
    po_number: str
    po_date: date
    scheduled_date: date
    client_id: int
    client_code: str = ""
    client_name: str = ""
    area_name: Optional[str] = None
    zone_id: Optional[int] = None
    zone_name: str = "Unassigned"
    zone_code: str = "-"
    distance_km: float = 0
    total_items: int = 0
    total_quantity: int = 0
    total_amount: float = 0
    base_rate: float = 0
    drop_cost: float = 0
    charge_kind: str
    is_overdue: bool = False


class UnallocatedGroup(BaseModel):
    """All unallocated orders priced as one sequence in PO-date order"""
    order_count: int
    total_items: int
    total_value: float
    batch_cost: float
    recommended_vehicle: str
    recommended_vehicle_label: str
    overdue_count: int
    zone_summary: List[ZoneSummary]
    orders: List[PlannedStop]


class AllocationSummary(BaseModel):
    unallocated_orders: int = 0
    unallocated_value: float = 0
    allocated_batches: int = 0
    allocated_orders: int = 0
    allocated_value: float = 0


class AllocationPlannerResponse(BaseModel):
    selected_date: date
    unallocated: Optional[UnallocatedGroup] = None
    batches: List[BatchResponse] = []
    vehicles: List[VehicleResponse] = []
    summary: AllocationSummary


class RouteStop(PlannedStop):
    route_sequence: int
    leg_distance_km: float = 0
    cutoff_time: Optional[str] = None
    days_until_due: Optional[int] = None


class RoutePlanGroup(BaseModel):
    """Pending orders in nearest-neighbour order, priced in that order"""
    order_count: int
    total_items: int
    total_quantity: int
    total_amount: float
    estimated_cost: float
    total_route_km: float
    max_distance: float
    overdue_count: int
    oldest_po_date: Optional[date] = None
    zone_summary: List[ZoneSummary]
    orders: List[RouteStop]


class UpcomingDay(BaseModel):
    """Pending orders scheduled on one upcoming date, priced in PO-date order"""
    scheduled_date: date
    day_name: str
    days_from_now: int
    order_count: int
    total_amount: float
    total_rate: float
    zone_count: int
    orders: List[PlannedStop]


class RouteSummary(BaseModel):
    total_pending: int = 0
    total_zones: int = 0
    total_estimated_cost: float = 0
    total_route_km: float = 0
    overdue_orders: int = 0
    due_today: int = 0
    oldest_po: Optional[date] = None


class RoutePlannerResponse(BaseModel):
    selected_date: date
    route: Optional[RoutePlanGroup] = None
    upcoming: List[UpcomingDay] = []
    summary: RouteSummary


class CalculateRouteRequest(BaseModel):
    order_ids: List[int] = Field(..., min_length=1)


class CalculatedStop(BaseModel):
    sequence: int
    order_id: int
    po_number: str
    po_date: date
    client_code: str = ""
    area: Optional[str] = None
    zone: Optional[str] = None
    distance_km: float = 0
    drop_cost: float
    cumulative_cost: float


class CalculateRouteResponse(BaseModel):
    route: List[CalculatedStop]
    total_cost: float
    total_orders: int
    zones_covered: int


class ConfirmDelivery(BaseModel):
    delivery_date: Optional[date] = Field(None, description="Defaults to today")
    base_rate: Optional[float] = Field(None, ge=0, description="Defaults to the client's zone base rate")
    drop_cost: Optional[float] = Field(None, ge=0, description="Defaults to base_rate")


class BulkConfirmEntry(BaseModel):
    id: int
    base_rate: Optional[float] = Field(None, ge=0, description="Only the first entry's base rate is charged")


class ConfirmBulkDelivery(BaseModel):
    orders: List[BulkConfirmEntry] = Field(..., min_length=1)
    delivery_date: Optional[date] = None


class ConfirmResponse(BaseModel):
    message: str
    confirmed_count: int
    total_rate: float
    order_ids: List[int]
