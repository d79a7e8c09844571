"""Tenant membership — binds one identity to one tenant with a role."""

import uuid
from enum import StrEnum

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class MembershipRole(StrEnum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class TenantMembership(TimestampMixin, SQLModel, table=True):
    __tablename__ = "tenant_memberships"
    __table_args__ = (UniqueConstraint("tenant_id", "user_id", name="uq_tenant_membership"),)

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    # Identity-provider user id; not a foreign key, the provider may be remote
    user_id: uuid.UUID = Field(nullable=False, index=True)
    role: MembershipRole = Field(default=MembershipRole.MEMBER)
    onboarding_status: str = Field(default="pending", max_length=32)
    invited_via: str | None = Field(default=None, max_length=64)
