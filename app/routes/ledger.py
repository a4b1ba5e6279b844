"""
Ledger consistency endpoints for operators.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.core.database import get_session
from app.core.exceptions import LedgerError
from app.handlers.ledger import reconcile, repair
from app.handlers.reports import scan_drift
from app.models.ledger import ReconcileReport, RepairResult
from app.routes.errors import ledger_http_error

router = APIRouter(prefix="/ledger", tags=["ledger"])
logger = logging.getLogger(__name__)


@router.get("/resources/{resource_id}/{kind}/reconcile", response_model=ReconcileReport)
async def reconcile_endpoint(
    resource_id: int,
    kind: str,
    session: AsyncSession = Depends(get_session)
):
    """
    Compare the stored counter against access events and activity log entries.

    Read-only; safe to call at any time.
    """
    try:
        return await reconcile(session, resource_id, kind)
    except LedgerError as e:
        raise ledger_http_error(e)


@router.post("/resources/{resource_id}/{kind}/repair", response_model=RepairResult)
async def repair_endpoint(
    resource_id: int,
    kind: str,
    session: AsyncSession = Depends(get_session)
):
    """Recompute the counter from the access events."""
    try:
        counter_value = await repair(session, resource_id, kind)
    except LedgerError as e:
        logger.error(
            "Repair of %s counter for resource %s failed: %s", kind, resource_id, e,
            extra={"resource_id": resource_id, "kind": kind}
        )
        raise ledger_http_error(e)

    logger.info("Repaired %s counter for resource %s: %s", kind, resource_id, counter_value)
    return RepairResult(resource_id=resource_id, kind=kind, counter_value=counter_value)


@router.get("/drift", response_model=List[ReconcileReport])
async def drift_endpoint(
    include_in_sync: bool = False,
    session: AsyncSession = Depends(get_session)
):
    """Reconcile every resource and kind, returning the ones that drifted."""
    try:
        return await scan_drift(session, include_in_sync=include_in_sync)
    except LedgerError as e:
        raise ledger_http_error(e)
