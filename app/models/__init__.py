"""Import all models so SQLModel.metadata picks them up."""

from app.models.domain import CustomDomain
from app.models.membership import MembershipRole, TenantMembership
from app.models.reserved_slug import ReservedSlug
from app.models.signup import SignupRequest, SignupStatus
from app.models.subscription import SubscriptionPlan, SubscriptionStatus, TenantSubscription
from app.models.tenant import DatabaseType, Tenant, TenantRead, TenantStatus
from app.models.tenant_settings import TenantSettings
from app.models.user import User

__all__ = [
    "CustomDomain",
    "DatabaseType",
    "MembershipRole",
    "ReservedSlug",
    "SignupRequest",
    "SignupStatus",
    "SubscriptionPlan",
    "SubscriptionStatus",
    "Tenant",
    "TenantMembership",
    "TenantRead",
    "TenantSettings",
    "TenantStatus",
    "TenantSubscription",
    "User",
]
