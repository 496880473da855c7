from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from outbound.accounts.models import User
from outbound.platform.audit.models import AuditLog
from outbound.platform.audit.schemas import AuditLogPage, AuditLogRead
from outbound.platform.security.context import RequestContext
from outbound.team.models import INVITATION_ACCEPTED, TeamMember


class AuditLogService:
    def list_logs(
        self,
        session: Session,
        ctx: RequestContext,
        *,
        action: str | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> AuditLogPage:
        member_ids = session.scalars(
            select(TeamMember.member_user_id).where(
                TeamMember.user_id == ctx.effective_user_id,
                TeamMember.status == INVITATION_ACCEPTED,
                TeamMember.member_user_id.is_not(None),
            )
        )
        account_user_ids = {ctx.effective_user_id, *member_ids}

        filters = [AuditLog.user_id.in_(list(account_user_ids))]
        if action:
            filters.append(AuditLog.action == action.upper())
        if since is not None:
            filters.append(AuditLog.created_at >= since)
        if until is not None:
            filters.append(AuditLog.created_at <= until)

        total = session.scalar(select(func.count(AuditLog.id)).where(*filters)) or 0
        rows = session.execute(
            select(AuditLog, User.email)
            .outerjoin(User, User.id == AuditLog.user_id)
            .where(*filters)
            .order_by(AuditLog.created_at.desc(), AuditLog.id)
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()

        logs = [
            AuditLogRead.model_validate(entry).model_copy(update={"user_email": email})
            for entry, email in rows
        ]
        return AuditLogPage(logs=logs, total=total, page=page, limit=limit)


audit_log_service = AuditLogService()
