"""
Audit log model - append-only tamper-evident activity trail.
"""

from sqlmodel import SQLModel, Field
from sqlalchemy import Index
from typing import Optional
from datetime import datetime
from enum import Enum

from app.models.access_event import AccessKind


class AuditAction(str, Enum):
    """Actions recorded in the activity log."""
    RESOURCE_VIEWED = "RESOURCE_VIEWED"
    RESOURCE_DOWNLOADED = "RESOURCE_DOWNLOADED"
    COUNTER_REPAIRED = "COUNTER_REPAIRED"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    RESOURCE_CREATED = "RESOURCE_CREATED"
    RESOURCE_UPDATED = "RESOURCE_UPDATED"
    RESOURCE_DELETED = "RESOURCE_DELETED"


ACTION_FOR_KIND = {
    AccessKind.VIEW: AuditAction.RESOURCE_VIEWED,
    AccessKind.DOWNLOAD: AuditAction.RESOURCE_DOWNLOADED,
}


class AuditEntryBase(SQLModel):
    """Base audit entry schema."""
    actor_id: Optional[int] = Field(default=None, description="Acting user, None for anonymous")
    action: AuditAction = Field(...)
    resource_id: Optional[int] = Field(default=None, foreign_key="resources.id")
    details: Optional[str] = Field(
        default=None,
        description="JSON string of additional metadata"
    )
    payload_hash: str = Field(..., description="SHA-256 hash of the audited payload")


class AuditEntry(AuditEntryBase, table=True):
    """Audit log database table - append-only."""
    __tablename__ = "activity_logs"
    __table_args__ = (
        Index("ix_activity_logs_resource", "resource_id"),
        Index("ix_activity_logs_action", "action"),
        Index("ix_activity_logs_occurred_at", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    occurred_at: datetime = Field(...)


class AuditEntryRead(AuditEntryBase):
    """Schema for reading an audit entry."""
    id: int
    occurred_at: datetime
