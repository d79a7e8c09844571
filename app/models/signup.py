"""Signup request — the tracked record of one provisioning attempt."""

import uuid
from datetime import datetime
from enum import StrEnum

from sqlalchemy import Text
from sqlmodel import Column, Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class SignupStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class SignupRequest(TimestampMixin, SQLModel, table=True):
    __tablename__ = "signup_requests"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID | None = Field(
        default=None, foreign_key="tenants.id", nullable=True, index=True,
    )

    requested_slug: str = Field(max_length=63, nullable=False, index=True)
    company_name: str = Field(max_length=255, nullable=False)
    contact_name: str = Field(max_length=255, nullable=False)
    contact_email: str = Field(max_length=320, nullable=False)

    # Envelope-encrypted JSON (see app.core.security.encrypt_field)
    phone_encrypted: str | None = Field(default=None, sa_column=Column(Text))

    status: SignupStatus = Field(default=SignupStatus.PENDING)
    failure_reason: str | None = Field(default=None, max_length=64)
    completed_at: datetime | None = Field(default=None)
