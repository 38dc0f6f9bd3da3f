"""
Delivery order schemas
"""
from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel, Field


class DeliveryOrderItemBase(BaseModel):
    """Line item fields"""
    part_number: str = Field(..., min_length=1, max_length=100, description="Part number")
    description: Optional[str] = Field(None, max_length=255)
    unit_price: float = Field(..., ge=0, description="Unit price")
    quantity: int = Field(..., ge=1, description="Quantity")


class DeliveryOrderItemCreate(DeliveryOrderItemBase):
    pass


class DeliveryOrderItemResponse(DeliveryOrderItemBase):
    id: int
    total_price: float

    class Config:
        from_attributes = True


class DeliveryOrderCreate(BaseModel):
    """Create an unassigned delivery order"""
    po_number: str = Field(..., min_length=1, max_length=50, description="PO number")
    po_date: date = Field(..., description="PO date")
    scheduled_date: date = Field(..., description="Scheduled delivery date")
    client_id: int = Field(..., description="Client ID")
    delivery_type: Optional[str] = Field(None, max_length=50, description="Delivery type (Pickup orders are never planned)")
    remarks: Optional[str] = None
    items: List[DeliveryOrderItemCreate] = Field(default_factory=list)


class DeliveryOrderResponse(BaseModel):
    """Delivery order"""
    id: int
    po_number: str
    po_date: date
    scheduled_date: date
    actual_date: Optional[date] = None
    status: str
    delivery_type: Optional[str] = None

    client_id: int
    client_code: str = ""
    client_name: str = ""
    area_name: str = ""
    zone_name: str = "Unassigned"
    distance_km: float = 0

    batch_id: Optional[int] = None

    base_rate: float = 0
    additional_rate_type: str = "none"
    additional_rate: float = 0
    total_rate: float = 0
    drop_cost: float = 0

    total_items: int = 0
    total_quantity: int = 0
    total_amount: float = 0
    days_variance: Optional[int] = None
    remarks: Optional[str] = None

    items: List[DeliveryOrderItemResponse] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DeliveryOrderListResponse(BaseModel):
    data: List[DeliveryOrderResponse]
    total: int
