from __future__ import annotations

import json
import logging
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from outbound.core.config import get_settings
from outbound.platform.audit.actions import resolve_action, should_audit
from outbound.platform.audit.recorder import AuditEntry, AuditRecorder, client_ip, extract_metadata


logger = logging.getLogger("outbound.audit")


def _decode_json(raw: bytes) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None


class AuditMiddleware(BaseHTTPMiddleware):
    """Records an audit entry for successful mutating requests made by an authenticated caller.

    The entry is written by a background task once the response body has been sent.
    """

    async def dispatch(self, request: Request, call_next):  # type: ignore[no-untyped-def]
        method = request.method.upper()
        path = request.url.path
        if not get_settings().audit_enabled or not should_audit(method, path):
            return await call_next(request)

        action = resolve_action(method, path)
        if action is None:
            return await call_next(request)

        request_body = _decode_json(await request.body())
        response = await call_next(request)
        if not 200 <= response.status_code < 300:
            return response

        principal = getattr(request.state, "principal", None)
        recorder: AuditRecorder | None = getattr(request.app.state, "audit_recorder", None)
        if principal is None or recorder is None:
            return response

        body = b"".join([chunk async for chunk in response.body_iterator])
        entry = AuditEntry(
            user_id=principal.user_id,
            action=action.value,
            ip_address=client_ip(request),
            device=request.headers.get("user-agent"),
            metadata=extract_metadata(path, request_body, _decode_json(body)),
        )
        logger.debug("audit.scheduled", extra={"action": entry.action, "user_id": str(entry.user_id)})
        audited = Response(content=body, status_code=response.status_code, background=recorder.schedule(entry))
        # repeated headers such as Set-Cookie survive only through raw_headers
        audited.raw_headers = response.raw_headers
        return audited
