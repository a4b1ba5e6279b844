"""
Resource access endpoints.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select
from typing import List, Optional

from app.core.constants import ACTOR_HEADER
from app.core.database import get_session
from app.core.exceptions import LedgerError
from app.handlers.ledger import is_storable_id, record_access
from app.models.access_event import AccessEventRead, AccessKind
from app.models.resource import Resource, ResourceRead
from app.routes.errors import ledger_http_error

router = APIRouter(prefix="/resources", tags=["resources"])
logger = logging.getLogger(__name__)


def actor_from_request(request: Request) -> Optional[int]:
    """Acting user id from the actor header, None for anonymous access."""
    raw = request.headers.get(ACTOR_HEADER)
    if not raw:
        return None
    try:
        actor_id = int(raw)
    except ValueError:
        actor_id = None
    if actor_id is None or not is_storable_id(actor_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {ACTOR_HEADER} header"
        )
    return actor_id


def context_from_request(request: Request) -> dict:
    """Client details stored alongside the access event."""
    return {
        "ip_address": (request.headers.get("X-Forwarded-For") or (request.client.host if request.client else ""))[:255],
        "user_agent": (request.headers.get("User-Agent") or "")[:255]
    }


async def _track(
    request: Request,
    resource_id: int,
    kind: AccessKind,
    session: AsyncSession
):
    actor_id = actor_from_request(request)
    try:
        return await record_access(
            session,
            resource_id,
            actor_id,
            kind,
            context_from_request(request)
        )
    except LedgerError as e:
        logger.warning(
            "Failed to record %s of resource %s: %s", kind.value, resource_id, e,
            extra={"resource_id": resource_id, "kind": kind.value, "actor_id": actor_id}
        )
        raise ledger_http_error(e)


@router.get("", response_model=List[ResourceRead])
async def list_resources_endpoint(
    session: AsyncSession = Depends(get_session)
):
    """List all resources with their counters."""
    result = await session.execute(select(Resource).order_by(Resource.id))
    return list(result.scalars().all())


@router.get("/{resource_id}", response_model=ResourceRead)
async def get_resource_endpoint(
    resource_id: int,
    session: AsyncSession = Depends(get_session)
):
    """Get resource by ID."""
    resource = await session.get(Resource, resource_id) if is_storable_id(resource_id) else None
    if not resource:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Resource {resource_id} not found"
        )
    return resource


@router.post("/{resource_id}/views", response_model=AccessEventRead, status_code=status.HTTP_201_CREATED)
async def track_view_endpoint(
    resource_id: int,
    request: Request,
    session: AsyncSession = Depends(get_session)
):
    """Record a view of a resource."""
    return await _track(request, resource_id, AccessKind.VIEW, session)


@router.post("/{resource_id}/downloads", response_model=AccessEventRead, status_code=status.HTTP_201_CREATED)
async def track_download_endpoint(
    resource_id: int,
    request: Request,
    session: AsyncSession = Depends(get_session)
):
    """
    Record a download of a resource.

    The download must not proceed unless this returns 201: a failed call
    leaves no trace in the counters or the activity log.
    """
    return await _track(request, resource_id, AccessKind.DOWNLOAD, session)
