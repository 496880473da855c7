from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from outbound.metrics import observe_identity_resolve_failure
from outbound.platform.security.context import EffectiveIdentity, Principal, TeamRole
from outbound.team.models import INVITATION_ACCEPTED, Organization, OrganizationMember, TeamMember


logger = logging.getLogger("outbound.security")


class EffectiveIdentityResolver:
    """Resolves whose account the caller is acting on.

    An accepted team membership redirects the caller to the owner's account with
    the membership's role and organization assignments. Anyone else acts on their
    own account with no role restriction and no organization scope.
    """

    def resolve(self, session: Session, principal: Principal) -> EffectiveIdentity:
        try:
            return self._resolve(session, principal)
        except SQLAlchemyError as exc:
            session.rollback()
            observe_identity_resolve_failure()
            logger.warning(
                "identity.resolve_failed",
                exc_info=True,
                extra={"user_id": str(principal.user_id), "error": str(exc)},
            )
            return EffectiveIdentity(effective_user_id=principal.user_id)

    def _resolve(self, session: Session, principal: Principal) -> EffectiveIdentity:
        membership = session.scalar(
            select(TeamMember)
            .where(
                TeamMember.member_user_id == principal.user_id,
                TeamMember.status == INVITATION_ACCEPTED,
            )
            .order_by(TeamMember.created_at, TeamMember.id)
            .limit(1)
        )
        if membership is None:
            return EffectiveIdentity(effective_user_id=principal.user_id)

        # first assignment first; new records default to scope[0]
        rows = session.execute(
            select(Organization.id, Organization.name)
            .join(OrganizationMember, OrganizationMember.organization_id == Organization.id)
            .where(OrganizationMember.team_member_id == membership.id)
            .order_by(OrganizationMember.created_at, OrganizationMember.id)
        ).all()

        return EffectiveIdentity(
            effective_user_id=membership.user_id,
            team_role=TeamRole.parse(membership.role) or TeamRole.VIEWER,
            team_member_id=membership.id,
            org_scope=tuple(row.id for row in rows),
            org_names=tuple(row.name for row in rows),
        )


identity_resolver = EffectiveIdentityResolver()
