# ORM models

from delivery_planner.models.zone import Zone, Area
from delivery_planner.models.client import Client
from delivery_planner.models.vehicle import Vehicle
from delivery_planner.models.delivery_order import DeliveryOrder
from delivery_planner.models.delivery_order_item import DeliveryOrderItem
from delivery_planner.models.delivery_batch import DeliveryBatch
from delivery_planner.models.audit_log import AuditLog

__all__ = [
    "Zone",
    "Area",
    "Client",
    "Vehicle",
    "DeliveryOrder",
    "DeliveryOrderItem",
    "DeliveryBatch",
    "AuditLog",
]
