"""
Report and aggregation handlers.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select, func
from typing import List, Dict, Any, Optional, Tuple

from app.core.constants import POPULAR_RESOURCES_LIMIT, ACTIVITY_PAGE_SIZE
from app.handlers.ledger import reconcile, repair
from app.models.access_event import AccessEvent, AccessKind
from app.models.audit import AuditEntry, AuditAction
from app.models.ledger import ReconcileReport
from app.models.resource import Resource


async def get_engagement_summary(session: AsyncSession) -> Dict[str, Any]:
    """
    Get platform-level engagement summary.

    Counter totals come from the resources table and event totals from the
    access_events table, so the two can be compared at a glance.
    """
    total_resources = await session.execute(select(func.count(Resource.id)))
    resource_count = total_resources.scalar() or 0

    counter_totals = await session.execute(
        select(
            func.coalesce(func.sum(Resource.view_count), 0),
            func.coalesce(func.sum(Resource.download_count), 0)
        )
    )
    total_views, total_downloads = counter_totals.one()

    event_totals = await session.execute(
        select(AccessEvent.kind, func.count(AccessEvent.id)).group_by(AccessEvent.kind)
    )
    events_by_kind = {kind: count for kind, count in event_totals.all()}

    total_audits = await session.execute(select(func.count(AuditEntry.id)))
    audit_count = total_audits.scalar() or 0

    return {
        "total_resources": resource_count,
        "total_views": total_views,
        "total_downloads": total_downloads,
        "recorded_view_events": events_by_kind.get(AccessKind.VIEW, 0),
        "recorded_download_events": events_by_kind.get(AccessKind.DOWNLOAD, 0),
        "activity_log_entries": audit_count
    }


async def get_popular_resources(
    session: AsyncSession,
    limit: int = POPULAR_RESOURCES_LIMIT
) -> List[Resource]:
    """Resources ordered by combined view and download count."""
    statement = select(Resource).order_by(
        (Resource.view_count + Resource.download_count).desc(),
        Resource.id
    ).limit(limit)

    result = await session.execute(statement)
    return list(result.scalars().all())


async def get_activity_log(
    session: AsyncSession,
    action: Optional[AuditAction] = None,
    resource_id: Optional[int] = None,
    actor_id: Optional[int] = None,
    limit: int = ACTIVITY_PAGE_SIZE,
    offset: int = 0
) -> Tuple[List[AuditEntry], int]:
    """Get a page of activity log entries, newest first, with the total match count."""
    filters = []
    if action:
        filters.append(AuditEntry.action == action)
    if resource_id is not None:
        filters.append(AuditEntry.resource_id == resource_id)
    if actor_id is not None:
        filters.append(AuditEntry.actor_id == actor_id)

    total = await session.execute(select(func.count(AuditEntry.id)).where(*filters))
    total_count = total.scalar() or 0

    statement = (
        select(AuditEntry)
        .where(*filters)
        .order_by(AuditEntry.id.desc())
        .offset(offset)
        .limit(limit)
    )
    result = await session.execute(statement)
    return list(result.scalars().all()), total_count


async def scan_drift(
    session: AsyncSession,
    include_in_sync: bool = False
) -> List[ReconcileReport]:
    """
    Reconcile every resource for every access kind.

    Returns:
        Reports that are out of sync, or all reports when include_in_sync is set
    """
    resource_ids = await session.execute(select(Resource.id).order_by(Resource.id))

    reports = []
    for resource_id in resource_ids.scalars().all():
        for kind in AccessKind:
            report = await reconcile(session, resource_id, kind)
            if include_in_sync or not report.in_sync:
                reports.append(report)
    return reports


async def repair_drift(session: AsyncSession) -> List[Dict[str, Any]]:
    """Repair every counter that disagrees with its access events."""
    repaired = []
    for report in await scan_drift(session):
        if report.counter_value == report.event_count:
            # Only the activity log disagrees; events stay authoritative
            continue
        counter_value = await repair(session, report.resource_id, report.kind)
        repaired.append({
            "resource_id": report.resource_id,
            "kind": report.kind.value,
            "previous": report.counter_value,
            "counter_value": counter_value
        })
    return repaired
