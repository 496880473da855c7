from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

from sqlalchemy.orm import Session
from starlette.background import BackgroundTask
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request

from outbound.metrics import observe_audit_write, observe_audit_write_failure
from outbound.platform.audit.models import AuditLog


logger = logging.getLogger("outbound.audit")

METADATA_FIELDS = ("title", "name", "assetName", "email", "role", "type", "status")
_RESOURCE_CONTAINERS = ("item", "campaign", "cohort", "organization")
_URL_UUID_RE = re.compile(r"/([a-f0-9-]{36})(?:/|$)", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class AuditEntry:
    user_id: uuid.UUID
    action: str
    ip_address: str | None = None
    device: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class AuditWriter(Protocol):
    def write(self, entry: AuditEntry) -> None: ...


class SqlAlchemyAuditWriter:
    """Persists entries through a dedicated session, independent of the request's session."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def write(self, entry: AuditEntry) -> None:
        session = self._session_factory()
        try:
            session.add(
                AuditLog(
                    user_id=entry.user_id,
                    action=entry.action,
                    ip_address=entry.ip_address,
                    device=entry.device,
                    event_metadata=dict(entry.metadata),
                    created_at=entry.created_at,
                )
            )
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


def log_audit_failure(entry: AuditEntry, exc: Exception) -> None:
    observe_audit_write_failure()
    logger.error(
        "audit.write_failed",
        exc_info=exc,
        extra={"action": entry.action, "user_id": str(entry.user_id), "error": str(exc)},
    )


class AuditRecorder:
    """Writes audit entries after the response is sent. Failures go to ``on_error`` and never reach the caller."""

    def __init__(
        self,
        writer: AuditWriter,
        *,
        on_error: Callable[[AuditEntry, Exception], None] = log_audit_failure,
    ) -> None:
        self._writer = writer
        self._on_error = on_error

    async def record(self, entry: AuditEntry) -> None:
        try:
            await run_in_threadpool(self._writer.write, entry)
        except Exception as exc:
            self._on_error(entry, exc)
            return
        observe_audit_write(entry.action)

    def schedule(self, entry: AuditEntry) -> BackgroundTask:
        return BackgroundTask(self.record, entry)


def client_ip(request: Request) -> str | None:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    if request.client is not None:
        return request.client.host
    return None


def extract_metadata(path: str, request_body: Any, response_body: Any) -> dict[str, Any]:
    metadata: dict[str, Any] = {}
    if isinstance(request_body, Mapping):
        for key in METADATA_FIELDS:
            value = request_body.get(key)
            if value:
                metadata[key] = value

    url_match = _URL_UUID_RE.search(path)
    if url_match:
        metadata["resourceId"] = url_match.group(1)

    if isinstance(response_body, Mapping):
        response_id = response_body.get("id")
        if isinstance(response_id, str) and response_id:
            metadata["resourceId"] = response_id
        for container in _RESOURCE_CONTAINERS:
            nested = response_body.get(container)
            if isinstance(nested, Mapping) and isinstance(nested.get("id"), str):
                metadata["resourceId"] = nested["id"]
    return metadata
