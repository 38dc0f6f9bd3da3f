"""Audit trail writes, added to the caller's transaction (never committed here)."""

from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from delivery_planner.core.config import settings
from delivery_planner.models.audit_log import AuditLog
from delivery_planner.models.delivery_batch import DeliveryBatch
from delivery_planner.models.delivery_order import DeliveryOrder


def batch_snapshot(batch: DeliveryBatch) -> Dict[str, Any]:
    return {
        "batch_number": batch.batch_number,
        "status": batch.status,
        "order_count": batch.order_count,
        "total_value": float(batch.total_value or 0),
        "total_rate": float(batch.total_rate or 0),
        "total_distance_km": float(batch.total_distance_km or 0),
    }


def order_snapshot(order: DeliveryOrder) -> Dict[str, Any]:
    return {
        "po_number": order.po_number,
        "status": order.status,
        "batch_id": order.batch_id,
        "base_rate": float(order.base_rate or 0),
        "additional_rate_type": order.additional_rate_type,
        "additional_rate": float(order.additional_rate or 0),
        "total_rate": float(order.total_rate or 0),
    }


def record_audit(
    db: AsyncSession,
    *,
    action: str,
    resource_type: str,
    resource_id: Optional[int],
    resource_name: Optional[str],
    description: str,
    old_value: Optional[Dict[str, Any]] = None,
    new_value: Optional[Dict[str, Any]] = None,
    user_id: Optional[int] = None,
) -> AuditLog:
    log = AuditLog(
        user_id=user_id if user_id is not None else settings.DEFAULT_ACTOR_ID,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        resource_name=resource_name,
        description=description,
        old_value=old_value,
        new_value=new_value,
    )
    db.add(log)
    return log
