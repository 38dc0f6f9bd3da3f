"""Vehicle recommendation by cargo value (advisory only)."""

from decimal import Decimal
from typing import Optional, Union

from delivery_planner.core.config import settings
from delivery_planner.models.vehicle import vehicle_type_label


def recommend_vehicle(total_value: Union[Decimal, float, int], *, l300_max_value: Optional[Decimal] = None) -> str:
    """l300 up to and including the L300 limit, truck above it."""
    limit = Decimal(str(l300_max_value if l300_max_value is not None else settings.L300_MAX_VALUE))
    return "l300" if Decimal(str(total_value)) <= limit else "truck"


def recommend_vehicle_label(total_value) -> str:
    return vehicle_type_label(recommend_vehicle(total_value))
