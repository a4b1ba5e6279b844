"""
Access event model - one immutable record of a single view or download.
"""

from sqlmodel import SQLModel, Field
from sqlalchemy import Index
from typing import Optional
from datetime import datetime
from enum import Enum


class AccessKind(str, Enum):
    """Kinds of counted resource access."""
    VIEW = "view"
    DOWNLOAD = "download"


class AccessEventBase(SQLModel):
    """Base access event schema."""
    resource_id: int = Field(..., foreign_key="resources.id")
    actor_id: Optional[int] = Field(default=None, description="Acting user, None for anonymous access")
    kind: AccessKind = Field(...)
    context: str = Field(
        default="{}",
        description="JSON string of caller-supplied context (ip address, user agent)"
    )


class AccessEvent(AccessEventBase, table=True):
    """Access event database table - append-only."""
    __tablename__ = "access_events"
    __table_args__ = (
        Index("ix_access_events_resource_kind", "resource_id", "kind"),
        {"sqlite_autoincrement": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    occurred_at: datetime = Field(..., description="Set by the ledger at insert time")


class AccessEventRead(AccessEventBase):
    """Schema for reading an access event."""
    id: int
    occurred_at: datetime
