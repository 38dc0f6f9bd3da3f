"""
Delivery batch schemas
"""
from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel, Field


class BatchAllocate(BaseModel):
    """Allocate unassigned orders into a new batch

    order_ids is the pricing sequence: the first id is charged the base rate.
    """
    order_ids: List[int] = Field(..., min_length=1, description="Order IDs in stop order")
    planned_date: date = Field(..., description="Planned delivery date")
    vehicle_type: str = Field(..., pattern="^(l300|truck)$", description="l300 / truck")
    vehicle_id: Optional[int] = Field(None, description="Vehicle ID")
    notes: Optional[str] = Field(None, max_length=500)


class BatchComplete(BaseModel):
    delivery_date: Optional[date] = Field(None, description="Delivery date, defaults to today")


class BatchMemberResponse(BaseModel):
    """Order inside a batch"""
    id: int
    po_number: str
    client_code: str = ""
    scheduled_date: date
    status: str
    distance_km: float = 0
    total_amount: float = 0
    total_items: int = 0
    base_rate: float = 0
    additional_rate_type: str = "none"
    additional_rate: float = 0
    total_rate: float = 0

    class Config:
        from_attributes = True


class BatchResponse(BaseModel):
    """Delivery batch"""
    id: int
    batch_number: str
    planned_date: date
    actual_date: Optional[date] = None
    zone_id: Optional[int] = None
    zone_name: str = "Unknown"
    zone_code: str = "-"
    vehicle_id: Optional[int] = None
    vehicle_name: Optional[str] = None
    vehicle_type: str
    vehicle_type_label: str = ""
    order_count: int = 0
    total_items: int = 0
    total_value: float = 0
    total_rate: float = 0
    total_distance_km: float = 0
    status: str
    status_color: str = "gray"
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    orders: List[BatchMemberResponse] = []

    class Config:
        from_attributes = True


class BatchListResponse(BaseModel):
    data: List[BatchResponse]
    total: int


class BatchActionResponse(BaseModel):
    """Result of a lifecycle operation

    batch is None when the operation deleted the batch.
    """
    message: str
    batch: Optional[BatchResponse] = None
    released_orders: int = 0
