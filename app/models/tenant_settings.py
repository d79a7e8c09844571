"""Per-tenant settings — branding and feature flags, 1:1 with a tenant."""

import uuid

from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, json_text_field


class TenantSettings(TimestampMixin, SQLModel, table=True):
    __tablename__ = "tenant_settings"

    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", primary_key=True)

    # JSON objects stored as text, e.g. {"company_name": "Acme Capital"}
    branding: str = json_text_field()
    features: str = json_text_field()
    notifications: str = json_text_field()
    integrations: str = json_text_field()
