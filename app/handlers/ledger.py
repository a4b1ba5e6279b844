"""
Counted-event ledger handler.

Every resource access is recorded three ways: an append-only access event,
the denormalized counter on the resource, and an activity log entry. The
three writes share one transaction so they either all land or none do.
"""

import json
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Dict, Optional, Union

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select, func

from app.core.config import get_settings
from app.core.constants import DEFAULT_ACCESS_METHOD, MAX_ROW_ID, MIN_ROW_ID
from app.core.exceptions import (
    InvalidInput,
    PartialCommitDetected,
    ResourceNotFound,
    StorageUnavailable,
)
from app.models.access_event import AccessEvent, AccessKind
from app.models.audit import ACTION_FOR_KIND, AuditAction, AuditEntry
from app.models.ledger import ReconcileReport
from app.models.resource import Resource
from app.utils.hashing import hash_payload
from app.utils.time import utc_now

COUNTER_FIELDS = {
    AccessKind.VIEW: "view_count",
    AccessKind.DOWNLOAD: "download_count",
}

# Context keys copied into the activity log details
CLIENT_DETAIL_KEYS = ("ip_address", "user_agent")


def is_storable_id(value: Any) -> bool:
    """True when value fits the 64-bit integer column used for row ids."""
    return isinstance(value, int) and not isinstance(value, bool) and MIN_ROW_ID <= value <= MAX_ROW_ID


def check_resource_id(resource_id: Any) -> None:
    if not is_storable_id(resource_id):
        raise ResourceNotFound(resource_id)


def check_actor_id(actor_id: Any) -> None:
    if actor_id is not None and not is_storable_id(actor_id):
        raise InvalidInput(f"Invalid actor id: {actor_id!r}")


def coerce_kind(kind: Union[AccessKind, str]) -> AccessKind:
    """Accept an AccessKind or its string value."""
    try:
        return AccessKind(kind)
    except ValueError:
        raise InvalidInput(f"Unknown access kind: {kind!r}") from None


def encode_context(context: Optional[Mapping], max_bytes: int) -> str:
    """Serialize caller context to JSON, enforcing the size bound."""
    if context is None:
        context = {}
    if not isinstance(context, Mapping):
        raise InvalidInput("Context must be a mapping")
    try:
        encoded = json.dumps(dict(context), sort_keys=True)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"Context is not JSON serializable: {e}") from None
    if len(encoded.encode("utf-8")) > max_bytes:
        raise InvalidInput(f"Context exceeds {max_bytes} bytes")
    return encoded


def build_audit_entry(
    action: AuditAction,
    occurred_at: datetime,
    actor_id: Optional[int] = None,
    resource_id: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None
) -> AuditEntry:
    """Build an activity log row with its tamper-evident hash."""
    details = details or {}
    payload_hash = hash_payload({
        "actor_id": actor_id,
        "action": action.value,
        "resource_id": resource_id,
        "occurred_at": occurred_at.isoformat(),
        "details": details,
    })
    return AuditEntry(
        actor_id=actor_id,
        action=action,
        resource_id=resource_id,
        occurred_at=occurred_at,
        details=json.dumps(details, sort_keys=True),
        payload_hash=payload_hash
    )


async def _increment_counter(
    session: AsyncSession,
    resource_id: int,
    kind: AccessKind
) -> str:
    """Bump the resource counter in place and return the resource title."""
    field = COUNTER_FIELDS[kind]
    column = getattr(Resource, field)
    result = await session.execute(
        update(Resource)
        .where(Resource.id == resource_id)
        .values({field: column + 1})
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise ResourceNotFound(resource_id)
    if result.rowcount != 1:
        raise PartialCommitDetected(
            f"Counter update touched {result.rowcount} rows for resource {resource_id}"
        )

    title = await session.execute(select(Resource.title).where(Resource.id == resource_id))
    return title.scalar_one()


async def _append_event(
    session: AsyncSession,
    resource_id: int,
    actor_id: Optional[int],
    kind: AccessKind,
    context: str,
    occurred_at: datetime
) -> AccessEvent:
    event = AccessEvent(
        resource_id=resource_id,
        actor_id=actor_id,
        kind=kind,
        context=context,
        occurred_at=occurred_at
    )
    session.add(event)
    await session.flush()
    return event


async def _append_audit_entry(
    session: AsyncSession,
    event: AccessEvent,
    title: str,
    method: str,
    client: Optional[Mapping] = None
) -> AuditEntry:
    details = {"title": title, "method": method}
    if client:
        details.update({key: client[key] for key in CLIENT_DETAIL_KEYS if key in client})
    audit = build_audit_entry(
        ACTION_FOR_KIND[event.kind],
        occurred_at=event.occurred_at,
        actor_id=event.actor_id,
        resource_id=event.resource_id,
        details=details
    )
    session.add(audit)
    await session.flush()
    return audit


async def record_access(
    session: AsyncSession,
    resource_id: int,
    actor_id: Optional[int],
    kind: Union[AccessKind, str],
    context: Optional[Mapping] = None,
    max_context_bytes: Optional[int] = None,
    method: str = DEFAULT_ACCESS_METHOD
) -> AccessEvent:
    """
    Record one view or download of a resource.

    On success the access event, the counter increment and the activity log
    entry are committed together. On any failure the transaction is rolled
    back and nothing is written.

    Args:
        session: Database session; the call commits or rolls it back
        resource_id: Resource being accessed
        actor_id: Acting user, None for anonymous access
        kind: AccessKind or its string value
        context: Small JSON-serializable mapping (ip address, user agent)
        max_context_bytes: Size bound for the encoded context, defaults to settings
        method: Access channel recorded in the audit details

    Returns:
        The committed AccessEvent

    Raises:
        InvalidInput: unknown kind, unacceptable context or actor id
        ResourceNotFound: resource_id does not exist
        StorageUnavailable: the unit of work could not be committed
    """
    kind = coerce_kind(kind)
    check_resource_id(resource_id)
    check_actor_id(actor_id)
    if max_context_bytes is None:
        max_context_bytes = get_settings().max_context_bytes
    encoded_context = encode_context(context, max_context_bytes)
    occurred_at = utc_now()

    try:
        # The counter update is the first write so the row lock is taken up front
        title = await _increment_counter(session, resource_id, kind)
        event = await _append_event(
            session, resource_id, actor_id, kind, encoded_context, occurred_at
        )
        await _append_audit_entry(session, event, title, method, context)
        await session.commit()
    except PartialCommitDetected as e:
        await session.rollback()
        raise StorageUnavailable(f"Access not recorded: {e}") from e
    except SQLAlchemyError as e:
        await session.rollback()
        raise StorageUnavailable(f"Access not recorded: {e}") from e
    except BaseException:
        await session.rollback()
        raise

    return event


async def _counter_value(
    session: AsyncSession,
    resource_id: int,
    kind: AccessKind
) -> int:
    column = getattr(Resource, COUNTER_FIELDS[kind])
    result = await session.execute(select(column).where(Resource.id == resource_id))
    value = result.scalar()
    if value is None:
        raise ResourceNotFound(resource_id)
    return value


def _event_count_statement(resource_id: int, kind: AccessKind):
    return select(func.count(AccessEvent.id)).where(
        AccessEvent.resource_id == resource_id,
        AccessEvent.kind == kind
    )


async def reconcile(
    session: AsyncSession,
    resource_id: int,
    kind: Union[AccessKind, str]
) -> ReconcileReport:
    """
    Compare the counter, the access events and the activity log for a resource.

    Read-only. Accesses committed while the counts are being taken can
    show up as transient drift; call again before repairing.
    """
    kind = coerce_kind(kind)
    check_resource_id(resource_id)
    try:
        counter_value = await _counter_value(session, resource_id, kind)

        events = await session.execute(_event_count_statement(resource_id, kind))
        event_count = events.scalar() or 0

        audits = await session.execute(
            select(func.count(AuditEntry.id)).where(
                AuditEntry.resource_id == resource_id,
                AuditEntry.action == ACTION_FOR_KIND[kind]
            )
        )
        audit_count = audits.scalar() or 0
    except SQLAlchemyError as e:
        await session.rollback()
        raise StorageUnavailable(f"Reconcile failed: {e}") from e

    return ReconcileReport(
        resource_id=resource_id,
        kind=kind,
        event_count=event_count,
        counter_value=counter_value,
        audit_count=audit_count,
        in_sync=event_count == counter_value == audit_count
    )


async def repair(
    session: AsyncSession,
    resource_id: int,
    kind: Union[AccessKind, str]
) -> int:
    """
    Recompute a resource counter from its access events.

    The access events are authoritative; activity log rows are neither
    created nor removed to match. A COUNTER_REPAIRED entry is appended only
    when the stored value actually changed, so repeated calls are idempotent.

    Returns:
        The corrected counter value
    """
    kind = coerce_kind(kind)
    field = COUNTER_FIELDS[kind]
    check_resource_id(resource_id)

    try:
        previous = await _counter_value(session, resource_id, kind)

        await session.execute(
            update(Resource)
            .where(Resource.id == resource_id)
            .values({field: _event_count_statement(resource_id, kind).scalar_subquery()})
            .execution_options(synchronize_session=False)
        )
        corrected = await _counter_value(session, resource_id, kind)

        if corrected != previous:
            session.add(build_audit_entry(
                AuditAction.COUNTER_REPAIRED,
                occurred_at=utc_now(),
                resource_id=resource_id,
                details={"kind": kind.value, "previous": previous, "corrected": corrected}
            ))
        await session.commit()
    except ResourceNotFound:
        await session.rollback()
        raise
    except SQLAlchemyError as e:
        await session.rollback()
        raise StorageUnavailable(f"Repair failed: {e}") from e
    except BaseException:
        await session.rollback()
        raise

    return corrected
