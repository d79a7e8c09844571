"""Tenant model — top-level isolation boundary."""

import uuid
from datetime import datetime
from enum import StrEnum

from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class TenantStatus(StrEnum):
    TRIAL = "trial"
    ACTIVE = "active"
    SUSPENDED = "suspended"
    CANCELLED = "cancelled"


class DatabaseType(StrEnum):
    MANAGED = "managed"
    BYOD = "byod"


class Tenant(TimestampMixin, SQLModel, table=True):
    __tablename__ = "tenants"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    name: str = Field(max_length=255, nullable=False)
    # Immutable once created; the unique constraint is the final arbiter of availability
    slug: str = Field(max_length=63, unique=True, nullable=False, index=True)
    status: TenantStatus = Field(default=TenantStatus.TRIAL, index=True)
    database_type: DatabaseType = Field(default=DatabaseType.MANAGED)
    trial_ends_at: datetime | None = Field(default=None)

    # Self-service signup tracking
    is_self_service: bool = Field(default=False)
    contact_name: str | None = Field(default=None, max_length=255)
    contact_email: str | None = Field(default=None, max_length=320)
    signup_completed_at: datetime | None = Field(default=None)


# ── Pydantic schemas ─────────────────────────────────────────

class TenantRead(SQLModel):
    """Detached view of a tenant; safe to cache across requests."""

    id: uuid.UUID
    name: str
    slug: str
    status: TenantStatus
    database_type: DatabaseType
    trial_ends_at: datetime | None = None
    is_self_service: bool = False
    contact_name: str | None = None
    contact_email: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status == TenantStatus.ACTIVE
