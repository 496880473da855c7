from __future__ import annotations

import re
from enum import StrEnum


class AuditAction(StrEnum):
    ITEM_CREATED = "ITEM_CREATED"
    ITEM_UPDATED = "ITEM_UPDATED"
    ITEM_DELETED = "ITEM_DELETED"
    CAMPAIGN_CREATED = "CAMPAIGN_CREATED"
    CAMPAIGN_UPDATED = "CAMPAIGN_UPDATED"
    CAMPAIGN_DELETED = "CAMPAIGN_DELETED"
    CAMPAIGN_ITEM_ASSIGNED = "CAMPAIGN_ITEM_ASSIGNED"
    COHORT_CREATED = "COHORT_CREATED"
    COHORT_UPDATED = "COHORT_UPDATED"
    COHORT_DELETED = "COHORT_DELETED"
    COHORT_MEMBER_ADDED = "COHORT_MEMBER_ADDED"
    COHORT_MEMBER_REMOVED = "COHORT_MEMBER_REMOVED"
    COHORT_MEMBERS_IMPORTED = "COHORT_MEMBERS_IMPORTED"
    COHORT_STREAMS_ASSIGNED = "COHORT_STREAMS_ASSIGNED"
    COHORT_STREAM_REMOVED = "COHORT_STREAM_REMOVED"
    ORG_CREATED = "ORG_CREATED"
    ORG_UPDATED = "ORG_UPDATED"
    ORG_DELETED = "ORG_DELETED"
    ORG_MEMBER_ASSIGNED = "ORG_MEMBER_ASSIGNED"
    ORG_MEMBER_REMOVED = "ORG_MEMBER_REMOVED"
    ORG_CONTENT_ASSIGNED = "ORG_CONTENT_ASSIGNED"
    ORG_CONTENT_REMOVED = "ORG_CONTENT_REMOVED"
    TEAM_MEMBER_INVITED = "TEAM_MEMBER_INVITED"
    TEAM_ROLE_CHANGED = "TEAM_ROLE_CHANGED"
    TEAM_MEMBER_REMOVED = "TEAM_MEMBER_REMOVED"
    TEAM_INVITATION_ACCEPTED = "TEAM_INVITATION_ACCEPTED"


AUDITED_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

SKIP_PREFIXES = (
    "/api/auth",
    "/api/chat",
    "/api/analytics",
    "/api/dashboard",
    "/api/audit",
    "/api/admin",
    "/api/campaigns/track",
    "/api/settings/public",
)

ROUTE_ACTION_MAP: dict[str, AuditAction] = {
    "POST /api/items": AuditAction.ITEM_CREATED,
    "PUT /api/items": AuditAction.ITEM_UPDATED,
    "DELETE /api/items": AuditAction.ITEM_DELETED,
    "POST /api/campaigns": AuditAction.CAMPAIGN_CREATED,
    "PUT /api/campaigns": AuditAction.CAMPAIGN_UPDATED,
    "DELETE /api/campaigns": AuditAction.CAMPAIGN_DELETED,
    "POST /api/campaigns/assign": AuditAction.CAMPAIGN_ITEM_ASSIGNED,
    "POST /api/cohorts": AuditAction.COHORT_CREATED,
    "PUT /api/cohorts": AuditAction.COHORT_UPDATED,
    "DELETE /api/cohorts": AuditAction.COHORT_DELETED,
    "POST /api/organizations": AuditAction.ORG_CREATED,
    "PUT /api/organizations": AuditAction.ORG_UPDATED,
    "DELETE /api/organizations": AuditAction.ORG_DELETED,
    "POST /api/team/invite": AuditAction.TEAM_MEMBER_INVITED,
    "PUT /api/team/members": AuditAction.TEAM_ROLE_CHANGED,
    "DELETE /api/team/members": AuditAction.TEAM_MEMBER_REMOVED,
}

# nested resources that do not reduce to a mapped route once trailing ids are stripped
_NESTED_ACTIONS: tuple[tuple[str, re.Pattern[str], AuditAction], ...] = (
    ("POST", re.compile(r"^/api/cohorts/[^/]+/members/import/?$"), AuditAction.COHORT_MEMBERS_IMPORTED),
    ("POST", re.compile(r"^/api/cohorts/[^/]+/members/?$"), AuditAction.COHORT_MEMBER_ADDED),
    ("DELETE", re.compile(r"^/api/cohorts/[^/]+/members/[^/]+/?$"), AuditAction.COHORT_MEMBER_REMOVED),
    ("PUT", re.compile(r"^/api/cohorts/[^/]+/streams/?$"), AuditAction.COHORT_STREAMS_ASSIGNED),
    ("DELETE", re.compile(r"^/api/cohorts/[^/]+/streams/[^/]+/?$"), AuditAction.COHORT_STREAM_REMOVED),
    ("POST", re.compile(r"^/api/organizations/[^/]+/members/?$"), AuditAction.ORG_MEMBER_ASSIGNED),
    ("DELETE", re.compile(r"^/api/organizations/[^/]+/members/[^/]+/?$"), AuditAction.ORG_MEMBER_REMOVED),
    ("POST", re.compile(r"^/api/organizations/[^/]+/content/remove/?$"), AuditAction.ORG_CONTENT_REMOVED),
    ("POST", re.compile(r"^/api/organizations/[^/]+/content/?$"), AuditAction.ORG_CONTENT_ASSIGNED),
    ("POST", re.compile(r"^/api/team/invitations/[^/]+/accept/?$"), AuditAction.TEAM_INVITATION_ACCEPTED),
)

_TRAILING_HEX_ID_RE = re.compile(r"/[a-f0-9-]{8,}/?$", re.IGNORECASE)
_TRAILING_INT_ID_RE = re.compile(r"/\d+/?$")


def should_audit(method: str, path: str) -> bool:
    if method.upper() not in AUDITED_METHODS:
        return False
    return not any(path.startswith(prefix) for prefix in SKIP_PREFIXES)


def resolve_action(method: str, path: str) -> AuditAction | None:
    """Map a mutating request to its audit action, or None for unknown routes."""

    method = method.upper()
    exact = ROUTE_ACTION_MAP.get(f"{method} {path.rstrip('/')}")
    if exact is not None:
        return exact

    base_path = _TRAILING_INT_ID_RE.sub("", _TRAILING_HEX_ID_RE.sub("", path))
    if base_path != path:
        stripped = ROUTE_ACTION_MAP.get(f"{method} {base_path}")
        if stripped is not None:
            return stripped

    for nested_method, pattern, action in _NESTED_ACTIONS:
        if method == nested_method and pattern.match(path):
            return action
    return None
