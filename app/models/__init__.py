# SQLModel database models

from app.models.resource import Resource
from app.models.access_event import AccessEvent, AccessKind
from app.models.audit import AuditEntry, AuditAction

__all__ = [
    "Resource",
    "AccessEvent",
    "AccessKind",
    "AuditEntry",
    "AuditAction",
]
