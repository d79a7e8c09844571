"""User model — identities managed by the local identity provider."""

import uuid

from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, json_text_field, new_uuid


class User(TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    email: str = Field(max_length=320, unique=True, nullable=False, index=True)
    password_hash: str = Field(nullable=False)
    # Signup metadata, e.g. {"full_name": "...", "company_name": "..."}
    profile: str = json_text_field()
    is_active: bool = Field(default=True)
