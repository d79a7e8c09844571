"""Subscription plans and the tenant's binding to one of them."""

import uuid
from datetime import datetime
from enum import StrEnum

from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, json_text_field, new_uuid
from app.models.tenant import DatabaseType


class SubscriptionStatus(StrEnum):
    TRIALING = "trialing"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELLED = "cancelled"


class SubscriptionPlan(TimestampMixin, SQLModel, table=True):
    __tablename__ = "subscription_plans"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    name: str = Field(max_length=255, nullable=False)
    price_monthly: int = Field(nullable=False)  # cents
    database_type: DatabaseType = Field(nullable=False, index=True)
    user_limit: int | None = Field(default=None)
    features: str = json_text_field()
    is_active: bool = Field(default=True)


class TenantSubscription(TimestampMixin, SQLModel, table=True):
    __tablename__ = "tenant_subscriptions"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    plan_id: uuid.UUID | None = Field(
        default=None, foreign_key="subscription_plans.id", nullable=True,
    )
    status: SubscriptionStatus = Field(default=SubscriptionStatus.TRIALING, index=True)
    current_period_start: datetime | None = Field(default=None)
    current_period_end: datetime | None = Field(default=None)
    cancel_at_period_end: bool = Field(default=False)
