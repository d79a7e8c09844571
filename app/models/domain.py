"""Custom domain mapping — binds an externally-owned domain to a tenant."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class CustomDomain(TimestampMixin, SQLModel, table=True):
    __tablename__ = "tenant_domains"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)

    # Full host, lowercase, no port, e.g. "portal.acmefund.com"
    domain: str = Field(max_length=253, unique=True, nullable=False, index=True)

    # Only verified mappings take part in resolution
    is_verified: bool = Field(default=False)
    verification_token: str | None = Field(default=None, max_length=255)
    verified_at: datetime | None = Field(default=None)
