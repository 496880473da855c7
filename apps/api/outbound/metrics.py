from __future__ import annotations

import re

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.requests import Request


http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)

auth_gate_rejections_total = Counter(
    "auth_gate_rejections_total",
    "Requests rejected by the authentication gate by code",
    ["code"],
)

auth_gate_degraded_checks_total = Counter(
    "auth_gate_degraded_checks_total",
    "Gate checks skipped because a lookup failed",
    ["check"],
)

role_guard_denials_total = Counter(
    "role_guard_denials_total",
    "Team role capability denials",
    ["capability", "team_role"],
)

org_scope_violations_total = Counter(
    "org_scope_violations_total",
    "Writes rejected for targeting an organization outside the caller scope",
)

settings_cache_hit_total = Counter(
    "settings_cache_hit_total",
    "Platform settings cache hits",
)

settings_cache_miss_total = Counter(
    "settings_cache_miss_total",
    "Platform settings cache misses",
)

settings_cache_fallback_total = Counter(
    "settings_cache_fallback_total",
    "Platform settings loads that fell back to defaults",
)

identity_resolve_failures_total = Counter(
    "identity_resolve_failures_total",
    "Effective identity lookups that fell back to the caller",
)

audit_writes_total = Counter(
    "audit_writes_total",
    "Audit log entries written by action",
    ["action"],
)

audit_write_failures_total = Counter(
    "audit_write_failures_total",
    "Audit log writes that failed",
)


_UUID_RE = re.compile(
    r"\b[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}\b"
)
_INT_RE = re.compile(r"/\d+\b")
_PATH_PARAM_RE = re.compile(r"\{[^{}]+\}")


def _normalize_route_template(path: str) -> str:
    return _PATH_PARAM_RE.sub("{id}", path)


def _sanitize_path(path: str) -> str:
    without_uuids = _UUID_RE.sub("{id}", path)
    return _INT_RE.sub("/{id}", without_uuids)


def resolve_http_path_label(request: Request) -> str:
    route = request.scope.get("route")
    if route is not None:
        path_format = getattr(route, "path_format", None)
        if isinstance(path_format, str) and path_format:
            return _normalize_route_template(path_format)
        route_path = getattr(route, "path", None)
        if isinstance(route_path, str) and route_path:
            return _normalize_route_template(route_path)
    return _sanitize_path(request.url.path)


def observe_http_request(method: str, path: str, status: int, duration: float) -> None:
    status_str = str(status)
    http_requests_total.labels(method=method, path=path, status=status_str).inc()
    http_request_duration_seconds.labels(method=method, path=path).observe(duration)


def observe_auth_gate_rejection(code: str) -> None:
    auth_gate_rejections_total.labels(code=code).inc()


def observe_auth_gate_degraded(check: str) -> None:
    auth_gate_degraded_checks_total.labels(check=check).inc()


def observe_role_guard_denial(capability: str, team_role: str) -> None:
    role_guard_denials_total.labels(capability=capability, team_role=team_role).inc()


def observe_org_scope_violation() -> None:
    org_scope_violations_total.inc()


def observe_settings_cache_hit() -> None:
    settings_cache_hit_total.inc()


def observe_settings_cache_miss() -> None:
    settings_cache_miss_total.inc()


def observe_settings_cache_fallback() -> None:
    settings_cache_fallback_total.inc()


def observe_identity_resolve_failure() -> None:
    identity_resolve_failures_total.inc()


def observe_audit_write(action: str) -> None:
    audit_writes_total.labels(action=action).inc()


def observe_audit_write_failure() -> None:
    audit_write_failures_total.inc()


def generate_metrics_payload() -> bytes:
    return generate_latest()


def metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
