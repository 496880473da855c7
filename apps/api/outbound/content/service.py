from __future__ import annotations

import csv
import io
import logging
import secrets
import uuid
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from outbound.content.models import Campaign, Cohort, CohortMember, CohortStream, Item
from outbound.content.schemas import (
    CampaignAssignRequest,
    CampaignCreate,
    CampaignUpdate,
    CohortCreate,
    CohortMemberInput,
    CohortMembersResult,
    CohortRead,
    CohortStreamRead,
    CohortUpdate,
    ItemCreate,
    ItemUpdate,
    PublicCampaignRead,
    PublicCohortRead,
    PublicItemRead,
)
from outbound.platform.security.context import RequestContext
from outbound.platform.security.scope import build_org_filter, resolve_create_org_id
from outbound.team.models import Organization


logger = logging.getLogger("outbound.content")

_SLUG_ATTEMPTS = 5


def scope_query(query: Any, model: Any, ctx: RequestContext) -> Any:
    return query.where(model.user_id == ctx.effective_user_id, *build_org_filter(model, ctx.org_scope))


def get_scoped_or_404(session: Session, model: Any, record_id: uuid.UUID, ctx: RequestContext, label: str) -> Any:
    record = session.scalar(scope_query(select(model).where(model.id == record_id), model, ctx))
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    return record


def resolve_target_org_id(session: Session, ctx: RequestContext, explicit: uuid.UUID | None) -> uuid.UUID | None:
    org_id = resolve_create_org_id(explicit, ctx.org_scope)
    if explicit is not None:
        owned = session.scalar(
            select(Organization.id).where(
                Organization.id == explicit,
                Organization.user_id == ctx.effective_user_id,
            )
        )
        if owned is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="organization not found")
    return org_id


def _new_slug(session: Session, model: Any) -> str:
    for _ in range(_SLUG_ATTEMPTS):
        candidate = secrets.token_urlsafe(6).lower().replace("_", "x").replace("-", "y")
        if session.scalar(select(model.id).where(model.slug == candidate)) is None:
            return candidate
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="could not allocate a unique slug")


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _required(value: str, label: str) -> str:
    cleaned = _clean(value)
    if cleaned is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{label} is required")
    return cleaned


class ItemService:
    def list_items(self, session: Session, ctx: RequestContext, *, campaign_id: uuid.UUID | None = None) -> list[Item]:
        query = scope_query(select(Item), Item, ctx)
        if campaign_id is not None:
            query = query.where(Item.campaign_id == campaign_id)
        return list(session.scalars(query.order_by(Item.created_at.desc(), Item.id)))

    def get_item(self, session: Session, ctx: RequestContext, item_id: uuid.UUID) -> Item:
        return get_scoped_or_404(session, Item, item_id, ctx, "item")

    def create_item(self, session: Session, ctx: RequestContext, dto: ItemCreate) -> Item:
        organization_id = resolve_target_org_id(session, ctx, dto.organization_id)
        if dto.campaign_id is not None:
            get_scoped_or_404(session, Campaign, dto.campaign_id, ctx, "campaign")

        item = Item(
            user_id=ctx.effective_user_id,
            organization_id=organization_id,
            campaign_id=dto.campaign_id,
            title=_required(dto.title, "title"),
            type=dto.type,
            content=dto.content,
            media_url=_clean(dto.media_url),
            slug=_new_slug(session, Item),
        )
        session.add(item)
        session.commit()
        session.refresh(item)
        logger.info("item.created", extra={"user_id": str(ctx.user_id), "resource_id": str(item.id)})
        return item

    def update_item(self, session: Session, ctx: RequestContext, item_id: uuid.UUID, dto: ItemUpdate) -> Item:
        item = self.get_item(session, ctx, item_id)
        values = dto.model_dump(exclude_unset=True)
        if "title" in values:
            item.title = _required(values["title"] or "", "title")
        if values.get("type") is not None:
            item.type = values["type"]
        if "content" in values:
            item.content = values["content"]
        if "media_url" in values:
            item.media_url = _clean(values["media_url"])
        session.commit()
        session.refresh(item)
        return item

    def delete_item(self, session: Session, ctx: RequestContext, item_id: uuid.UUID) -> None:
        item = self.get_item(session, ctx, item_id)
        session.delete(item)
        session.commit()
        logger.info("item.deleted", extra={"user_id": str(ctx.user_id), "resource_id": str(item_id)})


class CampaignService:
    def list_campaigns(self, session: Session, ctx: RequestContext) -> list[Campaign]:
        query = scope_query(select(Campaign), Campaign, ctx).order_by(Campaign.created_at.desc(), Campaign.id)
        return list(session.scalars(query))

    def get_campaign(self, session: Session, ctx: RequestContext, campaign_id: uuid.UUID) -> Campaign:
        return get_scoped_or_404(session, Campaign, campaign_id, ctx, "campaign")

    def create_campaign(self, session: Session, ctx: RequestContext, dto: CampaignCreate) -> Campaign:
        campaign = Campaign(
            user_id=ctx.effective_user_id,
            organization_id=resolve_target_org_id(session, ctx, dto.organization_id),
            name=_required(dto.name, "name"),
            slug=_new_slug(session, Campaign),
            description=_clean(dto.description),
            category=_clean(dto.category),
            logo_url=_clean(dto.logo_url),
        )
        session.add(campaign)
        session.commit()
        session.refresh(campaign)
        logger.info("campaign.created", extra={"user_id": str(ctx.user_id), "resource_id": str(campaign.id)})
        return campaign

    def update_campaign(
        self,
        session: Session,
        ctx: RequestContext,
        campaign_id: uuid.UUID,
        dto: CampaignUpdate,
    ) -> Campaign:
        campaign = self.get_campaign(session, ctx, campaign_id)
        values = dto.model_dump(exclude_unset=True)
        if "name" in values:
            campaign.name = _required(values["name"] or "", "name")
        for key in ("description", "category", "logo_url"):
            if key in values:
                setattr(campaign, key, _clean(values[key]))
        session.commit()
        session.refresh(campaign)
        return campaign

    def delete_campaign(self, session: Session, ctx: RequestContext, campaign_id: uuid.UUID) -> None:
        campaign = self.get_campaign(session, ctx, campaign_id)
        session.execute(update(Item).where(Item.campaign_id == campaign.id).values(campaign_id=None))
        session.execute(delete(CohortStream).where(CohortStream.campaign_id == campaign.id))
        session.delete(campaign)
        session.commit()
        logger.info("campaign.deleted", extra={"user_id": str(ctx.user_id), "resource_id": str(campaign_id)})

    def assign_item(self, session: Session, ctx: RequestContext, dto: CampaignAssignRequest) -> Item:
        item = get_scoped_or_404(session, Item, dto.item_id, ctx, "item")
        if dto.campaign_id is not None:
            get_scoped_or_404(session, Campaign, dto.campaign_id, ctx, "campaign")
        item.campaign_id = dto.campaign_id
        session.commit()
        session.refresh(item)
        return item

    def get_public_campaign(self, session: Session, slug: str) -> PublicCampaignRead:
        campaign = session.scalar(select(Campaign).where(Campaign.slug == slug))
        if campaign is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="campaign not found")
        return _public_campaign(session, campaign)


def _public_campaign(session: Session, campaign: Campaign) -> PublicCampaignRead:
    items = session.scalars(
        select(Item).where(Item.campaign_id == campaign.id).order_by(Item.created_at, Item.id)
    )
    return PublicCampaignRead(
        name=campaign.name,
        slug=campaign.slug,
        description=campaign.description,
        category=campaign.category,
        logo_url=campaign.logo_url,
        items=[PublicItemRead.model_validate(item) for item in items],
    )


def parse_member_csv(csv_data: str) -> list[CohortMemberInput]:
    """Parse a CSV export with a header row containing ``name`` and/or ``email`` columns."""

    rows = [row for row in csv.reader(io.StringIO(csv_data.strip())) if any(cell.strip() for cell in row)]
    if len(rows) < 2:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="CSV must include a header row and at least one member",
        )

    header = [cell.strip().lower() for cell in rows[0]]
    name_index = header.index("name") if "name" in header else None
    email_index = header.index("email") if "email" in header else None
    if name_index is None and email_index is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="CSV must include a name or email column")

    def cell(row: list[str], index: int | None) -> str | None:
        if index is None or index >= len(row):
            return None
        return row[index]

    return [CohortMemberInput(name=cell(row, name_index), email=cell(row, email_index)) for row in rows[1:]]


class CohortService:
    def list_cohorts(self, session: Session, ctx: RequestContext) -> list[CohortRead]:
        member_count = (
            select(func.count(CohortMember.id))
            .where(CohortMember.cohort_id == Cohort.id)
            .correlate(Cohort)
            .scalar_subquery()
        )
        query = scope_query(select(Cohort, member_count), Cohort, ctx).order_by(Cohort.created_at.desc(), Cohort.id)
        return [
            CohortRead.model_validate(cohort).model_copy(update={"member_count": count or 0})
            for cohort, count in session.execute(query).all()
        ]

    def get_cohort(self, session: Session, ctx: RequestContext, cohort_id: uuid.UUID) -> Cohort:
        return get_scoped_or_404(session, Cohort, cohort_id, ctx, "cohort")

    def read_cohort(self, session: Session, cohort: Cohort) -> CohortRead:
        count = session.scalar(select(func.count(CohortMember.id)).where(CohortMember.cohort_id == cohort.id))
        return CohortRead.model_validate(cohort).model_copy(update={"member_count": count or 0})

    def create_cohort(self, session: Session, ctx: RequestContext, dto: CohortCreate) -> CohortRead:
        cohort = Cohort(
            user_id=ctx.effective_user_id,
            organization_id=resolve_target_org_id(session, ctx, dto.organization_id),
            name=_required(dto.name, "name"),
            slug=_new_slug(session, Cohort),
            description=_clean(dto.description),
        )
        session.add(cohort)
        session.commit()
        session.refresh(cohort)
        logger.info("cohort.created", extra={"user_id": str(ctx.user_id), "resource_id": str(cohort.id)})
        return self.read_cohort(session, cohort)

    def update_cohort(self, session: Session, ctx: RequestContext, cohort_id: uuid.UUID, dto: CohortUpdate) -> CohortRead:
        cohort = self.get_cohort(session, ctx, cohort_id)
        values = dto.model_dump(exclude_unset=True)
        if "name" in values:
            cohort.name = _required(values["name"] or "", "name")
        if "description" in values:
            cohort.description = _clean(values["description"])
        if values.get("status") is not None:
            cohort.status = values["status"]
        session.commit()
        session.refresh(cohort)
        return self.read_cohort(session, cohort)

    def delete_cohort(self, session: Session, ctx: RequestContext, cohort_id: uuid.UUID) -> None:
        cohort = self.get_cohort(session, ctx, cohort_id)
        session.delete(cohort)
        session.commit()
        logger.info("cohort.deleted", extra={"user_id": str(ctx.user_id), "resource_id": str(cohort_id)})

    def list_members(self, session: Session, ctx: RequestContext, cohort_id: uuid.UUID) -> list[CohortMember]:
        cohort = self.get_cohort(session, ctx, cohort_id)
        query = (
            select(CohortMember)
            .where(CohortMember.cohort_id == cohort.id)
            .order_by(CohortMember.created_at, CohortMember.id)
        )
        return list(session.scalars(query))

    def add_members(
        self,
        session: Session,
        ctx: RequestContext,
        cohort_id: uuid.UUID,
        members: list[CohortMemberInput],
    ) -> CohortMembersResult:
        cohort = self.get_cohort(session, ctx, cohort_id)
        existing = set(
            session.scalars(
                select(CohortMember.email).where(
                    CohortMember.cohort_id == cohort.id,
                    CohortMember.email.is_not(None),
                )
            )
        )

        added = 0
        skipped = 0
        for member in members:
            name = _clean(member.name)
            email = _clean(member.email)
            email = email.lower() if email else None
            if name is None and email is None:
                skipped += 1
                continue
            if email is not None and email in existing:
                skipped += 1
                continue
            session.add(CohortMember(cohort_id=cohort.id, name=name, email=email))
            if email is not None:
                existing.add(email)
            added += 1

        session.commit()
        logger.info(
            "cohort.members_added",
            extra={"user_id": str(ctx.user_id), "resource_id": str(cohort.id), "reason": f"added={added} skipped={skipped}"},
        )
        return CohortMembersResult(added=added, skipped=skipped)

    def import_members(
        self,
        session: Session,
        ctx: RequestContext,
        cohort_id: uuid.UUID,
        csv_data: str,
    ) -> CohortMembersResult:
        self.get_cohort(session, ctx, cohort_id)
        return self.add_members(session, ctx, cohort_id, parse_member_csv(csv_data))

    def remove_member(self, session: Session, ctx: RequestContext, cohort_id: uuid.UUID, member_id: uuid.UUID) -> None:
        cohort = self.get_cohort(session, ctx, cohort_id)
        member = session.scalar(
            select(CohortMember).where(CohortMember.id == member_id, CohortMember.cohort_id == cohort.id)
        )
        if member is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="cohort member not found")
        session.delete(member)
        session.commit()

    def list_streams(self, session: Session, ctx: RequestContext, cohort_id: uuid.UUID) -> list[CohortStreamRead]:
        cohort = self.get_cohort(session, ctx, cohort_id)
        rows = session.execute(
            select(CohortStream, Campaign)
            .join(Campaign, Campaign.id == CohortStream.campaign_id)
            .where(CohortStream.cohort_id == cohort.id)
            .order_by(CohortStream.created_at, CohortStream.id)
        ).all()
        return [
            CohortStreamRead(
                id=stream.id,
                cohort_id=stream.cohort_id,
                campaign_id=campaign.id,
                campaign_name=campaign.name,
                campaign_slug=campaign.slug,
                created_at=stream.created_at,
            )
            for stream, campaign in rows
        ]

    def assign_streams(
        self,
        session: Session,
        ctx: RequestContext,
        cohort_id: uuid.UUID,
        campaign_ids: list[uuid.UUID],
    ) -> list[CohortStreamRead]:
        """Replace the cohort's stream assignments; campaigns the caller cannot see are ignored."""

        cohort = self.get_cohort(session, ctx, cohort_id)
        visible_ids: list[uuid.UUID] = []
        if campaign_ids:
            visible = set(
                session.scalars(
                    scope_query(select(Campaign.id), Campaign, ctx).where(Campaign.id.in_(campaign_ids))
                )
            )
            visible_ids = [campaign_id for campaign_id in dict.fromkeys(campaign_ids) if campaign_id in visible]

        session.execute(delete(CohortStream).where(CohortStream.cohort_id == cohort.id))
        for campaign_id in visible_ids:
            session.add(CohortStream(cohort_id=cohort.id, campaign_id=campaign_id))
        session.commit()
        return self.list_streams(session, ctx, cohort_id)

    def remove_stream(self, session: Session, ctx: RequestContext, cohort_id: uuid.UUID, assignment_id: uuid.UUID) -> None:
        cohort = self.get_cohort(session, ctx, cohort_id)
        assignment = session.scalar(
            select(CohortStream).where(CohortStream.id == assignment_id, CohortStream.cohort_id == cohort.id)
        )
        if assignment is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="stream assignment not found")
        session.delete(assignment)
        session.commit()

    def get_public_cohort(self, session: Session, slug: str) -> PublicCohortRead:
        cohort = session.scalar(select(Cohort).where(Cohort.slug == slug, Cohort.status == "active"))
        if cohort is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="cohort not found")
        campaigns = session.scalars(
            select(Campaign)
            .join(CohortStream, CohortStream.campaign_id == Campaign.id)
            .where(CohortStream.cohort_id == cohort.id)
            .order_by(CohortStream.created_at, CohortStream.id)
        )
        return PublicCohortRead(
            name=cohort.name,
            slug=cohort.slug,
            description=cohort.description,
            streams=[_public_campaign(session, campaign) for campaign in campaigns],
        )


item_service = ItemService()
campaign_service = CampaignService()
cohort_service = CohortService()
