"""Reserved slugs — system subdomains no tenant may claim."""

import uuid

from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class ReservedSlug(TimestampMixin, SQLModel, table=True):
    __tablename__ = "reserved_slugs"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    slug: str = Field(max_length=63, unique=True, nullable=False, index=True)
    reason: str | None = Field(default=None, max_length=255)
