"""create control plane tables

Revision ID: 3f1a9c2d7b10
Revises: 
Create Date: 2026-10-17 09:12:44.118203

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '3f1a9c2d7b10'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# SQLModel persists StrEnum members by name
tenant_status = sa.Enum("TRIAL", "ACTIVE", "SUSPENDED", "CANCELLED", name="tenantstatus")
database_type = sa.Enum("MANAGED", "BYOD", name="databasetype")
signup_status = sa.Enum("PENDING", "PROCESSING", "COMPLETED", "FAILED", name="signupstatus")
subscription_status = sa.Enum(
    "TRIALING", "ACTIVE", "PAST_DUE", "CANCELLED", name="subscriptionstatus"
)
membership_role = sa.Enum("OWNER", "ADMIN", "MEMBER", name="membershiprole")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(63), nullable=False),
        sa.Column("status", tenant_status, nullable=False),
        sa.Column("database_type", database_type, nullable=False),
        sa.Column("trial_ends_at", sa.DateTime(), nullable=True),
        sa.Column("is_self_service", sa.Boolean(), nullable=False),
        sa.Column("contact_name", sa.String(255), nullable=True),
        sa.Column("contact_email", sa.String(320), nullable=True),
        sa.Column("signup_completed_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_tenants_slug", "tenants", ["slug"], unique=True)
    op.create_index("ix_tenants_status", "tenants", ["status"])

    op.create_table(
        "tenant_domains",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("domain", sa.String(253), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.Column("verification_token", sa.String(255), nullable=True),
        sa.Column("verified_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_tenant_domains_tenant_id", "tenant_domains", ["tenant_id"])
    op.create_index("ix_tenant_domains_domain", "tenant_domains", ["domain"], unique=True)

    op.create_table(
        "reserved_slugs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("slug", sa.String(63), nullable=False),
        sa.Column("reason", sa.String(255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_reserved_slugs_slug", "reserved_slugs", ["slug"], unique=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("profile", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "signup_requests",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=True),
        sa.Column("requested_slug", sa.String(63), nullable=False),
        sa.Column("company_name", sa.String(255), nullable=False),
        sa.Column("contact_name", sa.String(255), nullable=False),
        sa.Column("contact_email", sa.String(320), nullable=False),
        sa.Column("phone_encrypted", sa.Text(), nullable=True),
        sa.Column("status", signup_status, nullable=False),
        sa.Column("failure_reason", sa.String(64), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_signup_requests_tenant_id", "signup_requests", ["tenant_id"])
    op.create_index("ix_signup_requests_requested_slug", "signup_requests", ["requested_slug"])

    op.create_table(
        "tenant_settings",
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), primary_key=True),
        sa.Column("branding", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("features", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("notifications", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("integrations", sa.Text(), nullable=False, server_default="{}"),
        *_timestamps(),
    )

    op.create_table(
        "subscription_plans",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("price_monthly", sa.Integer(), nullable=False),
        sa.Column("database_type", database_type, nullable=False),
        sa.Column("user_limit", sa.Integer(), nullable=True),
        sa.Column("features", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        "ix_subscription_plans_database_type", "subscription_plans", ["database_type"]
    )

    op.create_table(
        "tenant_subscriptions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("plan_id", sa.Uuid(), sa.ForeignKey("subscription_plans.id"), nullable=True),
        sa.Column("status", subscription_status, nullable=False),
        sa.Column("current_period_start", sa.DateTime(), nullable=True),
        sa.Column("current_period_end", sa.DateTime(), nullable=True),
        sa.Column("cancel_at_period_end", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_tenant_subscriptions_tenant_id", "tenant_subscriptions", ["tenant_id"])
    op.create_index("ix_tenant_subscriptions_status", "tenant_subscriptions", ["status"])

    op.create_table(
        "tenant_memberships",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("role", membership_role, nullable=False),
        sa.Column("onboarding_status", sa.String(32), nullable=False),
        sa.Column("invited_via", sa.String(64), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "user_id", name="uq_tenant_membership"),
    )
    op.create_index("ix_tenant_memberships_tenant_id", "tenant_memberships", ["tenant_id"])
    op.create_index("ix_tenant_memberships_user_id", "tenant_memberships", ["user_id"])


def downgrade() -> None:
    op.drop_table("tenant_memberships")
    op.drop_table("tenant_subscriptions")
    op.drop_table("subscription_plans")
    op.drop_table("tenant_settings")
    op.drop_table("signup_requests")
    op.drop_table("users")
    op.drop_table("reserved_slugs")
    op.drop_table("tenant_domains")
    op.drop_table("tenants")
    for enum in (membership_role, subscription_status, signup_status, database_type, tenant_status):
        enum.drop(op.get_bind(), checkfirst=True)
