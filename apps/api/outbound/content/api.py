from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from outbound.content.schemas import (
    CampaignAssignRequest,
    CampaignCreate,
    CampaignRead,
    CampaignUpdate,
    CohortCreate,
    CohortMemberRead,
    CohortMembersAdd,
    CohortMembersImport,
    CohortMembersResult,
    CohortRead,
    CohortStreamRead,
    CohortStreamsAssign,
    CohortUpdate,
    ItemCreate,
    ItemRead,
    ItemUpdate,
    PublicCampaignRead,
    PublicCohortRead,
)
from outbound.content.service import campaign_service, cohort_service, item_service
from outbound.core.context import get_request_context
from outbound.core.database import get_db
from outbound.core.rbac import require_capability
from outbound.platform.security.context import RequestContext
from outbound.platform.security.guard import Capability


items_router = APIRouter(prefix="/api/items", tags=["items"])
campaigns_router = APIRouter(prefix="/api/campaigns", tags=["campaigns"])
cohorts_router = APIRouter(prefix="/api/cohorts", tags=["cohorts"])


@items_router.get("", response_model=list[ItemRead])
def list_items(
    campaign_id: uuid.UUID | None = Query(default=None, alias="campaignId"),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> list[ItemRead]:
    return item_service.list_items(db, ctx, campaign_id=campaign_id)


@items_router.post("", response_model=ItemRead, status_code=status.HTTP_201_CREATED)
def create_item(
    dto: ItemCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.CREATE_ITEM)),
) -> ItemRead:
    return item_service.create_item(db, ctx, dto)


@items_router.get("/{item_id}", response_model=ItemRead)
def get_item(
    item_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> ItemRead:
    return item_service.get_item(db, ctx, item_id)


@items_router.put("/{item_id}", response_model=ItemRead)
def update_item(
    item_id: uuid.UUID,
    dto: ItemUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.UPDATE_ITEM)),
) -> ItemRead:
    return item_service.update_item(db, ctx, item_id, dto)


@items_router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(
    item_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.DELETE_ITEM)),
) -> Response:
    item_service.delete_item(db, ctx, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@campaigns_router.get("/public/{slug}", response_model=PublicCampaignRead)
def get_public_campaign(slug: str, db: Session = Depends(get_db)) -> PublicCampaignRead:
    return campaign_service.get_public_campaign(db, slug)


@campaigns_router.get("", response_model=list[CampaignRead])
def list_campaigns(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> list[CampaignRead]:
    return campaign_service.list_campaigns(db, ctx)


@campaigns_router.post("", response_model=CampaignRead, status_code=status.HTTP_201_CREATED)
def create_campaign(
    dto: CampaignCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.CREATE_CAMPAIGN)),
) -> CampaignRead:
    return campaign_service.create_campaign(db, ctx, dto)


@campaigns_router.post("/assign", response_model=ItemRead)
def assign_item_to_campaign(
    dto: CampaignAssignRequest,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.ASSIGN_CAMPAIGN_ITEM)),
) -> ItemRead:
    return campaign_service.assign_item(db, ctx, dto)


@campaigns_router.get("/{campaign_id}", response_model=CampaignRead)
def get_campaign(
    campaign_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> CampaignRead:
    return campaign_service.get_campaign(db, ctx, campaign_id)


@campaigns_router.put("/{campaign_id}", response_model=CampaignRead)
def update_campaign(
    campaign_id: uuid.UUID,
    dto: CampaignUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.UPDATE_CAMPAIGN)),
) -> CampaignRead:
    return campaign_service.update_campaign(db, ctx, campaign_id, dto)


@campaigns_router.delete("/{campaign_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_campaign(
    campaign_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.DELETE_CAMPAIGN)),
) -> Response:
    campaign_service.delete_campaign(db, ctx, campaign_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@cohorts_router.get("/public/{slug}", response_model=PublicCohortRead)
def get_public_cohort(slug: str, db: Session = Depends(get_db)) -> PublicCohortRead:
    return cohort_service.get_public_cohort(db, slug)


@cohorts_router.get("", response_model=list[CohortRead])
def list_cohorts(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> list[CohortRead]:
    return cohort_service.list_cohorts(db, ctx)


@cohorts_router.post("", response_model=CohortRead, status_code=status.HTTP_201_CREATED)
def create_cohort(
    dto: CohortCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.CREATE_COHORT)),
) -> CohortRead:
    return cohort_service.create_cohort(db, ctx, dto)


@cohorts_router.get("/{cohort_id}", response_model=CohortRead)
def get_cohort(
    cohort_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> CohortRead:
    return cohort_service.read_cohort(db, cohort_service.get_cohort(db, ctx, cohort_id))


@cohorts_router.put("/{cohort_id}", response_model=CohortRead)
def update_cohort(
    cohort_id: uuid.UUID,
    dto: CohortUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.UPDATE_COHORT)),
) -> CohortRead:
    return cohort_service.update_cohort(db, ctx, cohort_id, dto)


@cohorts_router.delete("/{cohort_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_cohort(
    cohort_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.DELETE_COHORT)),
) -> Response:
    cohort_service.delete_cohort(db, ctx, cohort_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@cohorts_router.get("/{cohort_id}/members", response_model=list[CohortMemberRead])
def list_cohort_members(
    cohort_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> list[CohortMemberRead]:
    return cohort_service.list_members(db, ctx, cohort_id)


@cohorts_router.post("/{cohort_id}/members", response_model=CohortMembersResult, status_code=status.HTTP_201_CREATED)
def add_cohort_members(
    cohort_id: uuid.UUID,
    dto: CohortMembersAdd,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.ADD_COHORT_MEMBER)),
) -> CohortMembersResult:
    return cohort_service.add_members(db, ctx, cohort_id, dto.members)


@cohorts_router.post("/{cohort_id}/members/import", response_model=CohortMembersResult)
def import_cohort_members(
    cohort_id: uuid.UUID,
    dto: CohortMembersImport,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.IMPORT_COHORT_MEMBERS)),
) -> CohortMembersResult:
    return cohort_service.import_members(db, ctx, cohort_id, dto.csv_data)


@cohorts_router.delete("/{cohort_id}/members/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_cohort_member(
    cohort_id: uuid.UUID,
    member_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.REMOVE_COHORT_MEMBER)),
) -> Response:
    cohort_service.remove_member(db, ctx, cohort_id, member_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@cohorts_router.get("/{cohort_id}/streams", response_model=list[CohortStreamRead])
def list_cohort_streams(
    cohort_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> list[CohortStreamRead]:
    return cohort_service.list_streams(db, ctx, cohort_id)


@cohorts_router.put("/{cohort_id}/streams", response_model=list[CohortStreamRead])
def assign_cohort_streams(
    cohort_id: uuid.UUID,
    dto: CohortStreamsAssign,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.ASSIGN_COHORT_STREAMS)),
) -> list[CohortStreamRead]:
    return cohort_service.assign_streams(db, ctx, cohort_id, dto.campaign_ids)


@cohorts_router.delete("/{cohort_id}/streams/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_cohort_stream(
    cohort_id: uuid.UUID,
    assignment_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_capability(Capability.REMOVE_COHORT_STREAM)),
) -> Response:
    cohort_service.remove_stream(db, ctx, cohort_id, assignment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
