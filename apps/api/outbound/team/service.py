from __future__ import annotations

import logging
import uuid

from fastapi import HTTPException, status
from sqlalchemy import Select, delete, func, select, update
from sqlalchemy.orm import Session

from outbound.accounts.models import User
from outbound.content.models import Campaign, Cohort, Item
from outbound.content.service import resolve_target_org_id, scope_query
from outbound.platform.security.context import ORGANIZATION_PLAN_ROLES, Principal, RequestContext
from outbound.team.models import INVITATION_ACCEPTED, INVITATION_PENDING, Organization, OrganizationMember, TeamMember
from outbound.team.schemas import (
    OrganizationContentRequest,
    OrganizationContentResult,
    OrganizationCreate,
    OrganizationMembersResult,
    OrganizationRead,
    OrganizationUpdate,
    TeamInvite,
    TeamRoleUpdate,
)


logger = logging.getLogger("outbound.team")

_CONTENT_MODELS = {"items": Item, "campaigns": Campaign, "cohorts": Cohort}


def _normalize_email(value: str) -> str:
    email = value.strip().lower()
    if "@" not in email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="a valid email is required")
    return email


class TeamService:
    def ensure_team_plan(self, session: Session, ctx: RequestContext) -> None:
        if ctx.is_team_member:
            owner_role = session.scalar(select(User.role).where(User.id == ctx.effective_user_id))
        else:
            owner_role = ctx.principal.role
        if owner_role not in ORGANIZATION_PLAN_ROLES:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Team features are only available on organization plans",
            )

    def _get_member(self, session: Session, ctx: RequestContext, member_id: uuid.UUID) -> TeamMember:
        member = session.scalar(
            select(TeamMember).where(TeamMember.id == member_id, TeamMember.user_id == ctx.effective_user_id)
        )
        if member is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="team member not found")
        return member

    def list_members(self, session: Session, ctx: RequestContext) -> list[TeamMember]:
        self.ensure_team_plan(session, ctx)
        query = (
            select(TeamMember)
            .where(TeamMember.user_id == ctx.effective_user_id)
            .order_by(TeamMember.created_at, TeamMember.id)
        )
        return list(session.scalars(query))

    def invite(self, session: Session, ctx: RequestContext, dto: TeamInvite) -> TeamMember:
        self.ensure_team_plan(session, ctx)
        email = _normalize_email(dto.email)

        owner_email = session.scalar(select(User.email).where(User.id == ctx.effective_user_id))
        if owner_email is not None and owner_email.lower() == email:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="you cannot invite the account owner")

        existing = session.scalar(
            select(TeamMember.id).where(TeamMember.user_id == ctx.effective_user_id, TeamMember.email == email)
        )
        if existing is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="this email is already on the team")

        member = TeamMember(
            user_id=ctx.effective_user_id,
            email=email,
            role=dto.role,
            status=INVITATION_PENDING,
        )
        session.add(member)
        session.commit()
        session.refresh(member)
        logger.info(
            "team.invited",
            extra={"user_id": str(ctx.user_id), "effective_user_id": str(ctx.effective_user_id), "role": dto.role},
        )
        return member

    def accept_invitation(self, session: Session, principal: Principal, invitation_id: uuid.UUID) -> TeamMember:
        invitation = session.scalar(
            select(TeamMember).where(TeamMember.id == invitation_id, TeamMember.status == INVITATION_PENDING)
        )
        candidate_emails = {principal.email.lower()} if principal.email else set()
        user_email = session.scalar(select(User.email).where(User.id == principal.user_id))
        if user_email:
            candidate_emails.add(user_email.lower())
        if invitation is None or invitation.email not in candidate_emails:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="invitation not found")
        if invitation.user_id == principal.user_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="you cannot join your own team")

        invitation.member_user_id = principal.user_id
        invitation.status = INVITATION_ACCEPTED
        session.commit()
        session.refresh(invitation)
        logger.info("team.invitation_accepted", extra={"user_id": str(principal.user_id)})
        return invitation

    def change_role(
        self,
        session: Session,
        ctx: RequestContext,
        member_id: uuid.UUID,
        dto: TeamRoleUpdate,
    ) -> TeamMember:
        self.ensure_team_plan(session, ctx)
        member = self._get_member(session, ctx, member_id)
        if member.id == ctx.identity.team_member_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="you cannot change your own role")
        member.role = dto.role
        session.commit()
        session.refresh(member)
        return member

    def remove_member(self, session: Session, ctx: RequestContext, member_id: uuid.UUID) -> None:
        self.ensure_team_plan(session, ctx)
        member = self._get_member(session, ctx, member_id)
        if member.id == ctx.identity.team_member_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="you cannot remove yourself")
        session.execute(delete(OrganizationMember).where(OrganizationMember.team_member_id == member.id))
        session.delete(member)
        session.commit()
        logger.info("team.member_removed", extra={"user_id": str(ctx.user_id), "resource_id": str(member_id)})


class OrganizationService:
    def _visible(self, ctx: RequestContext) -> Select[tuple[Organization]]:
        query = select(Organization).where(Organization.user_id == ctx.effective_user_id)
        if ctx.org_scope:
            query = query.where(Organization.id.in_(list(ctx.org_scope)))
        return query

    def get_organization(self, session: Session, ctx: RequestContext, organization_id: uuid.UUID) -> Organization:
        organization = session.scalar(self._visible(ctx).where(Organization.id == organization_id))
        if organization is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="organization not found")
        return organization

    def read_organization(self, session: Session, organization: Organization) -> OrganizationRead:
        count = session.scalar(
            select(func.count(OrganizationMember.id)).where(OrganizationMember.organization_id == organization.id)
        )
        return OrganizationRead.model_validate(organization).model_copy(update={"member_count": count or 0})

    def list_organizations(self, session: Session, ctx: RequestContext) -> list[OrganizationRead]:
        organizations = list(session.scalars(self._visible(ctx).order_by(Organization.created_at, Organization.id)))
        return [self.read_organization(session, organization) for organization in organizations]

    def create_organization(self, session: Session, ctx: RequestContext, dto: OrganizationCreate) -> OrganizationRead:
        name = dto.name.strip()
        if not name:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name is required")
        organization = Organization(
            user_id=ctx.effective_user_id,
            name=name,
            description=(dto.description or "").strip() or None,
        )
        session.add(organization)
        session.commit()
        session.refresh(organization)
        logger.info("organization.created", extra={"user_id": str(ctx.user_id), "resource_id": str(organization.id)})
        return self.read_organization(session, organization)

    def update_organization(
        self,
        session: Session,
        ctx: RequestContext,
        organization_id: uuid.UUID,
        dto: OrganizationUpdate,
    ) -> OrganizationRead:
        organization = self.get_organization(session, ctx, organization_id)
        values = dto.model_dump(exclude_unset=True)
        if "name" in values:
            name = (values["name"] or "").strip()
            if not name:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name is required")
            organization.name = name
        if "description" in values:
            organization.description = (values["description"] or "").strip() or None
        if values.get("status") is not None:
            organization.status = values["status"]
        session.commit()
        session.refresh(organization)
        return self.read_organization(session, organization)

    def delete_organization(self, session: Session, ctx: RequestContext, organization_id: uuid.UUID) -> None:
        organization = self.get_organization(session, ctx, organization_id)
        for model in _CONTENT_MODELS.values():
            session.execute(
                update(model)
                .where(model.organization_id == organization.id)
                .values(organization_id=None)
                .execution_options(synchronize_session=False)
            )
        session.execute(delete(OrganizationMember).where(OrganizationMember.organization_id == organization.id))
        session.delete(organization)
        session.commit()
        logger.info("organization.deleted", extra={"user_id": str(ctx.user_id), "resource_id": str(organization_id)})

    def assign_members(
        self,
        session: Session,
        ctx: RequestContext,
        organization_id: uuid.UUID,
        team_member_ids: list[uuid.UUID],
    ) -> OrganizationMembersResult:
        organization = self.get_organization(session, ctx, organization_id)
        eligible = set(
            session.scalars(
                select(TeamMember.id).where(
                    TeamMember.id.in_(team_member_ids),
                    TeamMember.user_id == ctx.effective_user_id,
                    TeamMember.status == INVITATION_ACCEPTED,
                )
            )
        )
        already_assigned = set(
            session.scalars(
                select(OrganizationMember.team_member_id).where(OrganizationMember.organization_id == organization.id)
            )
        )

        assigned = 0
        skipped = 0
        for team_member_id in dict.fromkeys(team_member_ids):
            if team_member_id not in eligible or team_member_id in already_assigned:
                skipped += 1
                continue
            session.add(OrganizationMember(organization_id=organization.id, team_member_id=team_member_id))
            already_assigned.add(team_member_id)
            assigned += 1
        session.commit()
        return OrganizationMembersResult(assigned=assigned, skipped=skipped)

    def remove_member(
        self,
        session: Session,
        ctx: RequestContext,
        organization_id: uuid.UUID,
        team_member_id: uuid.UUID,
    ) -> None:
        organization = self.get_organization(session, ctx, organization_id)
        assignment = session.scalar(
            select(OrganizationMember).where(
                OrganizationMember.organization_id == organization.id,
                OrganizationMember.team_member_id == team_member_id,
            )
        )
        if assignment is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="organization member not found")
        session.delete(assignment)
        session.commit()

    def assign_content(
        self,
        session: Session,
        ctx: RequestContext,
        organization_id: uuid.UUID,
        dto: OrganizationContentRequest,
    ) -> OrganizationContentResult:
        target_id = resolve_target_org_id(session, ctx, organization_id)
        model = _CONTENT_MODELS[dto.kind]
        visible_ids = list(session.scalars(scope_query(select(model.id), model, ctx).where(model.id.in_(dto.ids))))
        if visible_ids:
            session.execute(
                update(model)
                .where(model.id.in_(visible_ids))
                .values(organization_id=target_id)
                .execution_options(synchronize_session=False)
            )
        session.commit()
        return OrganizationContentResult(updated=len(visible_ids))

    def remove_content(
        self,
        session: Session,
        ctx: RequestContext,
        organization_id: uuid.UUID,
        dto: OrganizationContentRequest,
    ) -> OrganizationContentResult:
        organization = self.get_organization(session, ctx, organization_id)
        model = _CONTENT_MODELS[dto.kind]
        matched_ids = list(
            session.scalars(
                select(model.id).where(
                    model.id.in_(dto.ids),
                    model.user_id == ctx.effective_user_id,
                    model.organization_id == organization.id,
                )
            )
        )
        if matched_ids:
            session.execute(
                update(model)
                .where(model.id.in_(matched_ids))
                .values(organization_id=None)
                .execution_options(synchronize_session=False)
            )
        session.commit()
        return OrganizationContentResult(updated=len(matched_ids))


team_service = TeamService()
organization_service = OrganizationService()
