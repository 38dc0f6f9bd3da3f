"""
Audit log - one row per batch lifecycle operation
Written inside the same transaction as the operation it records
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.dialects.sqlite import JSON
from delivery_planner.db.base import Base


ACTION_LABELS = {
    "allocate": "Allocate",
    "remove": "Remove from batch",
    "delete": "Delete batch",
    "start": "Start delivery",
    "complete": "Complete batch",
    "confirm": "Confirm delivery",
    "bulk_confirm": "Bulk confirm delivery",
    "create": "Create",
}


class AuditLog(Base):
    """Audit trail"""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)

    # actor (no authentication; settings.DEFAULT_ACTOR_ID)
    user_id = Column(Integer, index=True, comment="Actor ID")

    # see ACTION_LABELS
    action = Column(String(20), nullable=False, index=True, comment="Action")

    # batch / order
    resource_type = Column(String(50), nullable=False, index=True, comment="Resource type")
    resource_id = Column(Integer, index=True, comment="Resource ID")
    resource_name = Column(String(100), comment="Batch number / PO number")

    description = Column(String(500))

    old_value = Column(JSON)
    new_value = Column(JSON)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f"<AuditLog {self.action} {self.resource_type}:{self.resource_id}>"

    @property
    def action_display(self) -> str:
        return ACTION_LABELS.get(self.action, self.action)
