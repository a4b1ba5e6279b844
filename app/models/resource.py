"""
Resource model - an educational resource that schools view and download.
"""

from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from app.utils.time import utc_now


class ResourceBase(SQLModel):
    """Base resource schema."""
    title: str = Field(..., max_length=255, description="Resource title")
    description: Optional[str] = Field(default=None, description="Short description")


class Resource(ResourceBase, table=True):
    """Resource database table.

    view_count and download_count are denormalized aggregates of the
    access_events rows; only the access ledger writes them.
    """
    __tablename__ = "resources"

    id: Optional[int] = Field(default=None, primary_key=True)
    view_count: int = Field(default=0, ge=0)
    download_count: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utc_now)


class ResourceRead(ResourceBase):
    """Schema for reading a resource."""
    id: int
    view_count: int
    download_count: int
    created_at: datetime
