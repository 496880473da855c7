from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from outbound.core.context import get_request_context
from outbound.core.database import get_db
from outbound.platform.audit.schemas import AuditLogPage
from outbound.platform.audit.service import audit_log_service
from outbound.platform.security.context import RequestContext


router = APIRouter(prefix="/api/audit", tags=["audit"])


@router.get("/logs", response_model=AuditLogPage)
def list_audit_logs(
    action: str | None = Query(default=None),
    since: datetime | None = Query(default=None),
    until: datetime | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> AuditLogPage:
    return audit_log_service.list_logs(db, ctx, action=action, since=since, until=until, page=page, limit=limit)
