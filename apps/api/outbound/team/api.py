from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from outbound.core.auth import get_principal
from outbound.core.database import get_db
from outbound.core.context import get_request_context
from outbound.core.rbac import require_capability
from outbound.platform.security.context import Principal, RequestContext
from outbound.platform.security.guard import Capability
from outbound.team.schemas import (
    OrganizationContentRequest,
    OrganizationContentResult,
    OrganizationCreate,
    OrganizationMembersAssign,
    OrganizationMembersResult,
    OrganizationRead,
    OrganizationUpdate,
    TeamInvite,
    TeamMemberRead,
    TeamRoleUpdate,
)
from outbound.team.service import organization_service, team_service


team_router = APIRouter(prefix="/api/team", tags=["team"])
organizations_router = APIRouter(prefix="/api/organizations", tags=["organizations"])


@team_router.get("/members", response_model=list[TeamMemberRead])
def list_team_members(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> list[TeamMemberRead]:
    return team_service.list_members(db, ctx)


@team_router.post("/invite", response_model=TeamMemberRead, status_code=status.HTTP_201_CREATED)
def invite_team_member(
    dto: TeamInvite,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.INVITE_TEAM_USER)),
) -> TeamMemberRead:
    return team_service.invite(db, ctx, dto)


@team_router.put("/members/{member_id}", response_model=TeamMemberRead)
def change_team_member_role(
    member_id: uuid.UUID,
    dto: TeamRoleUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.CHANGE_TEAM_ROLE)),
) -> TeamMemberRead:
    return team_service.change_role(db, ctx, member_id, dto)


@team_router.delete("/members/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_team_member(
    member_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.REMOVE_TEAM_USER)),
) -> Response:
    team_service.remove_member(db, ctx, member_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@team_router.post("/invitations/{invitation_id}/accept", response_model=TeamMemberRead)
def accept_team_invitation(
    invitation_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> TeamMemberRead:
    return team_service.accept_invitation(db, principal, invitation_id)


@organizations_router.get("", response_model=list[OrganizationRead])
def list_organizations(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> list[OrganizationRead]:
    return organization_service.list_organizations(db, ctx)


@organizations_router.post("", response_model=OrganizationRead, status_code=status.HTTP_201_CREATED)
def create_organization(
    dto: OrganizationCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.CREATE_ORGANIZATION)),
) -> OrganizationRead:
    return organization_service.create_organization(db, ctx, dto)


@organizations_router.put("/{organization_id}", response_model=OrganizationRead)
def update_organization(
    organization_id: uuid.UUID,
    dto: OrganizationUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.UPDATE_ORGANIZATION)),
) -> OrganizationRead:
    return organization_service.update_organization(db, ctx, organization_id, dto)


@organizations_router.delete("/{organization_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_organization(
    organization_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.DELETE_ORGANIZATION)),
) -> Response:
    organization_service.delete_organization(db, ctx, organization_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@organizations_router.post("/{organization_id}/members", response_model=OrganizationMembersResult)
def assign_organization_members(
    organization_id: uuid.UUID,
    dto: OrganizationMembersAssign,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.ASSIGN_ORGANIZATION_MEMBERS)),
) -> OrganizationMembersResult:
    return organization_service.assign_members(db, ctx, organization_id, dto.team_member_ids)


@organizations_router.delete("/{organization_id}/members/{team_member_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_organization_member(
    organization_id: uuid.UUID,
    team_member_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.REMOVE_ORGANIZATION_MEMBERS)),
) -> Response:
    organization_service.remove_member(db, ctx, organization_id, team_member_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@organizations_router.post("/{organization_id}/content", response_model=OrganizationContentResult)
def assign_organization_content(
    organization_id: uuid.UUID,
    dto: OrganizationContentRequest,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.ASSIGN_ORGANIZATION_CONTENT)),
) -> OrganizationContentResult:
    return organization_service.assign_content(db, ctx, organization_id, dto)


@organizations_router.post("/{organization_id}/content/remove", response_model=OrganizationContentResult)
def remove_organization_content(
    organization_id: uuid.UUID,
    dto: OrganizationContentRequest,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.REMOVE_ORGANIZATION_CONTENT)),
) -> OrganizationContentResult:
    return organization_service.remove_content(db, ctx, organization_id, dto)
