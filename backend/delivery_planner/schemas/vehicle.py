"""
Vehicle schemas
"""
from typing import Optional, List
from pydantic import BaseModel


class VehicleResponse(BaseModel):
    """Vehicle"""
    id: int
    code: Optional[str] = None
    name: Optional[str] = None
    display_name: str = ""
    type: str
    type_label: str = ""
    plate_number: str
    max_value: Optional[float] = None
    max_weight_kg: Optional[float] = None
    notes: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True


class VehicleListResponse(BaseModel):
    data: List[VehicleResponse]
    total: int
