"""Persistent store for tenants, domains, and signup bookkeeping.

``TenantStore`` is the interface the resolver, the slug validator, and the
provisioning pipeline depend on. ``SqlTenantStore`` implements it on top of
SQLModel with one session per operation. Two operations stand in for the
privileged server-side procedures:

* ``check_slug_available`` reads the reserved-slug table and *every* tenant,
  whatever its status, so no caller-scoped view can report a taken slug as
  free.
* ``provision_tenant`` creates the tenant and all of its dependent rows in a
  single transaction: either everything exists afterwards or nothing does.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Protocol

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlmodel import select

from app.core.errors import ErrorReason, ProvisioningError
from app.core.security import encrypt_field
from app.models.base import utcnow
from app.models.domain import CustomDomain
from app.models.membership import MembershipRole, TenantMembership
from app.models.reserved_slug import ReservedSlug
from app.models.signup import SignupRequest, SignupStatus
from app.models.subscription import SubscriptionPlan, SubscriptionStatus, TenantSubscription
from app.models.tenant import DatabaseType, Tenant, TenantRead, TenantStatus
from app.models.tenant_settings import TenantSettings
from app.services.slugs import RESERVED_SLUGS

logger = logging.getLogger(__name__)

DEFAULT_TRIAL_DAYS = 30

# (name, price in cents, database type, user limit)
DEFAULT_PLANS = [
    ("Starter", 29900, DatabaseType.MANAGED, 25),
    ("Professional", 59900, DatabaseType.MANAGED, 100),
    ("Bring Your Own Database", 39900, DatabaseType.BYOD, None),
]


@dataclass
class TenantProvisionRequest:
    user_id: uuid.UUID
    company_name: str
    slug: str
    contact_name: str
    contact_email: str
    contact_phone: str | None = None
    # Free-form hints copied into the tenant's branding, e.g. {"primary_use_case": "hedge_fund"}
    profile: dict = field(default_factory=dict)


@dataclass(frozen=True)
class ProvisionedTenant:
    tenant_id: uuid.UUID
    slug: str
    trial_ends_at: datetime


class TenantStore(Protocol):
    async def get_tenant_by_slug(self, slug: str) -> TenantRead | None: ...

    async def get_tenant_by_domain(self, domain: str) -> TenantRead | None: ...

    async def check_slug_available(self, slug: str) -> bool: ...

    async def create_signup_request(
        self,
        *,
        slug: str,
        company_name: str,
        contact_name: str,
        contact_email: str,
        phone: str | None = None,
    ) -> uuid.UUID: ...

    async def mark_signup_failed(self, signup_request_id: uuid.UUID, reason: ErrorReason) -> None: ...

    async def complete_signup_request(
        self, signup_request_id: uuid.UUID, tenant_id: uuid.UUID
    ) -> None: ...

    async def provision_tenant(self, request: TenantProvisionRequest) -> ProvisionedTenant: ...


class SqlTenantStore:
    """TenantStore backed by SQLModel tables."""

    def __init__(
        self,
        session_factory: sessionmaker,
        trial_period_days: int = DEFAULT_TRIAL_DAYS,
    ) -> None:
        self._session_factory = session_factory
        self.trial_period_days = trial_period_days

    # ── Lookups ──────────────────────────────────────────────

    async def get_tenant_by_slug(self, slug: str) -> TenantRead | None:
        async with self._session_factory() as session:
            result = await session.execute(select(Tenant).where(Tenant.slug == slug))
            tenant = result.scalar_one_or_none()
        return TenantRead.model_validate(tenant) if tenant else None

    async def get_tenant_by_domain(self, domain: str) -> TenantRead | None:
        """Return the tenant behind a *verified* custom domain."""
        stmt = (
            select(Tenant)
            .join(CustomDomain, CustomDomain.tenant_id == Tenant.id)
            .where(
                CustomDomain.domain == domain,
                CustomDomain.is_verified.is_(True),  # type: ignore[union-attr]
            )
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            tenant = result.scalar_one_or_none()
        return TenantRead.model_validate(tenant) if tenant else None

    async def check_slug_available(self, slug: str) -> bool:
        if slug in RESERVED_SLUGS:
            return False
        async with self._session_factory() as session:
            if await _is_reserved(session, slug):
                return False
            taken = await session.execute(select(Tenant.id).where(Tenant.slug == slug))
            return taken.first() is None

    # ── Signup bookkeeping ───────────────────────────────────

    async def create_signup_request(
        self,
        *,
        slug: str,
        company_name: str,
        contact_name: str,
        contact_email: str,
        phone: str | None = None,
    ) -> uuid.UUID:
        signup = SignupRequest(
            requested_slug=slug,
            company_name=company_name,
            contact_name=contact_name,
            contact_email=contact_email,
            phone_encrypted=encrypt_field(phone) if phone else None,
            status=SignupStatus.PROCESSING,
        )
        async with self._session_factory() as session:
            session.add(signup)
            await session.commit()
        return signup.id

    async def mark_signup_failed(self, signup_request_id: uuid.UUID, reason: ErrorReason) -> None:
        async with self._session_factory() as session:
            signup = await session.get(SignupRequest, signup_request_id)
            if signup is None:
                return
            signup.status = SignupStatus.FAILED
            signup.failure_reason = reason.value
            signup.updated_at = utcnow()
            session.add(signup)
            await session.commit()

    async def complete_signup_request(
        self, signup_request_id: uuid.UUID, tenant_id: uuid.UUID
    ) -> None:
        async with self._session_factory() as session:
            signup = await session.get(SignupRequest, signup_request_id)
            if signup is None:
                return
            now = utcnow()
            signup.status = SignupStatus.COMPLETED
            signup.tenant_id = tenant_id
            signup.completed_at = now
            signup.updated_at = now
            session.add(signup)
            await session.commit()

    # ── Provisioning ─────────────────────────────────────────

    async def provision_tenant(self, request: TenantProvisionRequest) -> ProvisionedTenant:
        """Create a trial tenant with its subscription, settings, and owner membership.

        Raises ProvisioningError (nothing committed) with reason:
            reserved_or_taken          slug collides with a tenant or reserved slug
            dependent_resource_failed  subscription/settings/membership insert failed
            tenant_creation_failed     any other store failure
        """
        now = utcnow()
        trial_ends_at = now + timedelta(days=self.trial_period_days)
        tenant = Tenant(
            name=request.company_name,
            slug=request.slug,
            status=TenantStatus.TRIAL,
            database_type=DatabaseType.MANAGED,
            trial_ends_at=trial_ends_at,
            is_self_service=True,
            contact_name=request.contact_name,
            contact_email=request.contact_email,
            signup_completed_at=now,
        )

        try:
            async with self._session_factory() as session:
                # Tenant insert goes first so the slug's unique constraint is
                # taken before anything else is read in this transaction.
                session.add(tenant)
                try:
                    await session.flush()
                except IntegrityError as exc:
                    raise ProvisioningError(
                        f"Subdomain '{request.slug}' is already taken",
                        ErrorReason.RESERVED_OR_TAKEN,
                    ) from exc

                if await _is_reserved(session, request.slug):
                    raise ProvisioningError(
                        f"Subdomain '{request.slug}' is reserved",
                        ErrorReason.RESERVED_OR_TAKEN,
                    )

                try:
                    await self._add_dependents(session, tenant, request, now, trial_ends_at)
                    await session.flush()
                except SQLAlchemyError as exc:
                    logger.error(
                        "Dependent resource creation failed for tenant %s",
                        request.slug,
                        extra={
                            "slug": request.slug,
                            "user_id": str(request.user_id),
                            "reason": ErrorReason.DEPENDENT_RESOURCE_FAILED.value,
                        },
                        exc_info=True,
                    )
                    raise ProvisioningError(
                        "Failed to create tenant resources",
                        ErrorReason.DEPENDENT_RESOURCE_FAILED,
                    ) from exc

                await session.commit()
        except SQLAlchemyError as exc:
            raise ProvisioningError(
                f"Failed to create tenant: {exc.__class__.__name__}",
                ErrorReason.TENANT_CREATION_FAILED,
            ) from exc

        logger.info("Provisioned tenant %s (%s)", tenant.slug, tenant.id)
        return ProvisionedTenant(tenant_id=tenant.id, slug=tenant.slug, trial_ends_at=trial_ends_at)

    async def _add_dependents(
        self,
        session: AsyncSession,
        tenant: Tenant,
        request: TenantProvisionRequest,
        period_start: datetime,
        period_end: datetime,
    ) -> None:
        plan = await _cheapest_active_plan(session, tenant.database_type)
        session.add(TenantSubscription(
            tenant_id=tenant.id,
            plan_id=plan.id if plan else None,
            status=SubscriptionStatus.TRIALING,
            current_period_start=period_start,
            current_period_end=period_end,
        ))

        branding = {
            "company_name": request.company_name,
            "contact_name": request.contact_name,
            "contact_email": request.contact_email,
            **request.profile,
        }
        session.add(TenantSettings(tenant_id=tenant.id, branding=json.dumps(branding)))

        session.add(TenantMembership(
            tenant_id=tenant.id,
            user_id=request.user_id,
            role=MembershipRole.ADMIN,
            onboarding_status="in_progress",
            invited_via="self_service_signup",
        ))


async def _is_reserved(session: AsyncSession, slug: str) -> bool:
    result = await session.execute(select(ReservedSlug.id).where(ReservedSlug.slug == slug))
    return result.first() is not None


async def _cheapest_active_plan(
    session: AsyncSession, database_type: DatabaseType
) -> SubscriptionPlan | None:
    stmt = (
        select(SubscriptionPlan)
        .where(
            SubscriptionPlan.database_type == database_type,
            SubscriptionPlan.is_active.is_(True),  # type: ignore[union-attr]
        )
        .order_by(SubscriptionPlan.price_monthly)
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalars().first()


async def seed_reference_data(session: AsyncSession) -> None:
    """Insert missing reserved slugs, and the default plans when none exist."""
    result = await session.execute(select(ReservedSlug.slug))
    existing = set(result.scalars().all())
    for slug in sorted(RESERVED_SLUGS - existing):
        session.add(ReservedSlug(slug=slug, reason="system"))

    result = await session.execute(select(SubscriptionPlan.id).limit(1))
    if result.first() is None:
        for name, price, database_type, user_limit in DEFAULT_PLANS:
            session.add(SubscriptionPlan(
                name=name,
                price_monthly=price,
                database_type=database_type,
                user_limit=user_limit,
            ))

    await session.commit()
