"""create content, platform settings and audit logs

Revision ID: 202610190002
Revises: 202610190001
Create Date: 2026-10-19 00:02:00
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


revision: str = "202610190002"
down_revision: str | None = "202610190001"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def _scoped_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("organization_id", sa.Uuid(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "campaigns",
        *_scoped_columns(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=64), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=64), nullable=True),
        sa.Column("logo_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )
    op.create_index("ix_campaigns_user_id", "campaigns", ["user_id"], unique=False)
    op.create_index("ix_campaigns_organization_id", "campaigns", ["organization_id"], unique=False)

    op.create_table(
        "items",
        *_scoped_columns(),
        sa.Column("campaign_id", sa.Uuid(), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("media_url", sa.Text(), nullable=True),
        sa.Column("slug", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )
    op.create_index("ix_items_user_id", "items", ["user_id"], unique=False)
    op.create_index("ix_items_organization_id", "items", ["organization_id"], unique=False)
    op.create_index("ix_items_campaign_id", "items", ["campaign_id"], unique=False)

    op.create_table(
        "cohorts",
        *_scoped_columns(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=64), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )
    op.create_index("ix_cohorts_user_id", "cohorts", ["user_id"], unique=False)
    op.create_index("ix_cohorts_organization_id", "cohorts", ["organization_id"], unique=False)

    op.create_table(
        "cohort_members",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("cohort_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["cohort_id"], ["cohorts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("cohort_id", "email", name="uq_cohort_members_cohort_email"),
    )
    op.create_index("ix_cohort_members_cohort_id", "cohort_members", ["cohort_id"], unique=False)

    op.create_table(
        "cohort_streams",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("cohort_id", sa.Uuid(), nullable=False),
        sa.Column("campaign_id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["cohort_id"], ["cohorts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("cohort_id", "campaign_id", name="uq_cohort_streams_pair"),
    )
    op.create_index("ix_cohort_streams_cohort_id", "cohort_streams", ["cohort_id"], unique=False)
    op.create_index("ix_cohort_streams_campaign_id", "cohort_streams", ["campaign_id"], unique=False)

    op.create_table(
        "platform_settings",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("platform_name", sa.String(length=255), nullable=True),
        sa.Column("support_email", sa.String(length=255), nullable=True),
        sa.Column("currency", sa.String(length=8), nullable=True),
        sa.Column("maintenance_mode", sa.Boolean(), nullable=True),
        sa.Column("allow_registrations", sa.Boolean(), nullable=True),
        sa.Column("require_email_verification", sa.Boolean(), nullable=True),
        sa.Column("default_user_role", sa.String(length=32), nullable=True),
        sa.Column("notify_new_customer", sa.Boolean(), nullable=True),
        sa.Column("notify_revenue_milestone", sa.Boolean(), nullable=True),
        sa.Column("notify_system_alerts", sa.Boolean(), nullable=True),
        sa.Column("notify_weekly_reports", sa.Boolean(), nullable=True),
        sa.Column("webhook_url", sa.Text(), nullable=True),
        sa.Column("two_factor_required", sa.Boolean(), nullable=True),
        sa.Column("login_attempt_limit", sa.Boolean(), nullable=True),
        sa.Column("session_timeout_minutes", sa.Integer(), nullable=True),
        sa.Column("auto_backups", sa.Boolean(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("device", sa.Text(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"], unique=False)
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"], unique=False)
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_audit_logs_created_at", table_name="audit_logs")
    op.drop_index("ix_audit_logs_action", table_name="audit_logs")
    op.drop_index("ix_audit_logs_user_id", table_name="audit_logs")
    op.drop_table("audit_logs")

    op.drop_table("platform_settings")

    op.drop_index("ix_cohort_streams_campaign_id", table_name="cohort_streams")
    op.drop_index("ix_cohort_streams_cohort_id", table_name="cohort_streams")
    op.drop_table("cohort_streams")

    op.drop_index("ix_cohort_members_cohort_id", table_name="cohort_members")
    op.drop_table("cohort_members")

    op.drop_index("ix_cohorts_organization_id", table_name="cohorts")
    op.drop_index("ix_cohorts_user_id", table_name="cohorts")
    op.drop_table("cohorts")

    op.drop_index("ix_items_campaign_id", table_name="items")
    op.drop_index("ix_items_organization_id", table_name="items")
    op.drop_index("ix_items_user_id", table_name="items")
    op.drop_table("items")

    op.drop_index("ix_campaigns_organization_id", table_name="campaigns")
    op.drop_index("ix_campaigns_user_id", table_name="campaigns")
    op.drop_table("campaigns")
