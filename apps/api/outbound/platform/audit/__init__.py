from outbound.platform.audit.actions import AuditAction, resolve_action, should_audit
from outbound.platform.audit.recorder import (
    AuditEntry,
    AuditRecorder,
    AuditWriter,
    SqlAlchemyAuditWriter,
    client_ip,
    extract_metadata,
)

__all__ = [
    "AuditAction",
    "AuditEntry",
    "AuditRecorder",
    "AuditWriter",
    "SqlAlchemyAuditWriter",
    "client_ip",
    "extract_metadata",
    "resolve_action",
    "should_audit",
]
