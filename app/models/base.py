"""Shared base fields for all control plane tables."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Text
from sqlmodel import Column, Field, SQLModel


def utcnow() -> datetime:
    # Naive UTC, matching the DateTime columns
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


def json_text_field(default: str = "{}"):
    """A JSON document stored as text, e.g. tenant branding or plan features."""
    return Field(default=default, sa_column=Column(Text, nullable=False, server_default=default))


class TimestampMixin(SQLModel):
    """Created / updated timestamps injected into every table."""

    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False)
