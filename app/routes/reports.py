"""
Report and aggregation endpoints.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, Any, List, Optional

from app.core.constants import POPULAR_RESOURCES_LIMIT, ACTIVITY_PAGE_SIZE, MAX_ACTIVITY_PAGE_SIZE
from app.core.database import get_session
from app.handlers.reports import (
    get_engagement_summary,
    get_popular_resources,
    get_activity_log
)
from app.models.audit import AuditAction, AuditEntryRead
from app.models.resource import ResourceRead

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/summary")
async def engagement_summary_endpoint(
    session: AsyncSession = Depends(get_session)
) -> Dict[str, Any]:
    """
    Get platform-level engagement summary.

    Returns:
        - total_resources
        - total_views, total_downloads (resource counters)
        - recorded_view_events, recorded_download_events (access events)
        - activity_log_entries
    """
    return await get_engagement_summary(session)


@router.get("/popular", response_model=List[ResourceRead])
async def popular_resources_endpoint(
    limit: int = Query(default=POPULAR_RESOURCES_LIMIT, ge=1, le=100),
    session: AsyncSession = Depends(get_session)
):
    """Get the most viewed and downloaded resources."""
    return await get_popular_resources(session, limit)


@router.get("/activity")
async def activity_log_endpoint(
    action: Optional[AuditAction] = None,
    resource_id: Optional[int] = None,
    actor_id: Optional[int] = None,
    limit: int = Query(default=ACTIVITY_PAGE_SIZE, ge=1, le=MAX_ACTIVITY_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    session: AsyncSession = Depends(get_session)
) -> Dict[str, Any]:
    """Get activity log entries, newest first."""
    entries, total = await get_activity_log(
        session,
        action=action,
        resource_id=resource_id,
        actor_id=actor_id,
        limit=limit,
        offset=offset
    )
    return {
        "total": total,
        "limit": limit,
        "offset": offset,
        "entries": [AuditEntryRead.model_validate(entry).model_dump(mode="json") for entry in entries]
    }
