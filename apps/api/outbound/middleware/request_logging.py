from __future__ import annotations

import logging
import time
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from outbound.metrics import observe_http_request, resolve_http_path_label


logger = logging.getLogger("outbound.request")


def _request_fields(request: Request, status_code: int, duration_ms: float) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "method": request.method,
        # resolved after routing so the label is the route template, not the raw path
        "path": resolve_http_path_label(request),
        "status_code": status_code,
        "duration_ms": duration_ms,
    }
    principal = getattr(request.state, "principal", None)
    if principal is not None:
        fields["user_id"] = str(principal.user_id)
        fields["role"] = principal.role
    return fields


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore[no-untyped-def]
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = round((time.perf_counter() - started) * 1000, 2)
            fields = _request_fields(request, 500, duration_ms)
            observe_http_request(method=fields["method"], path=fields["path"], status=500, duration=duration_ms / 1000)
            logger.error("http.error", exc_info=True, extra=fields)
            raise

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        fields = _request_fields(request, response.status_code, duration_ms)
        observe_http_request(
            method=fields["method"],
            path=fields["path"],
            status=response.status_code,
            duration=duration_ms / 1000,
        )
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(level, "http.request", extra=fields)
        return response
