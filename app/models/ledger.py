"""
Ledger report schemas.
"""

from sqlmodel import SQLModel

from app.models.access_event import AccessKind


class ReconcileReport(SQLModel):
    """Three independently computed counts for one resource and kind."""
    resource_id: int
    kind: AccessKind
    event_count: int
    counter_value: int
    audit_count: int
    in_sync: bool


class RepairResult(SQLModel):
    """Counter value after a repair."""
    resource_id: int
    kind: AccessKind
    counter_value: int
