"""Self-service tenant provisioning.

One run turns a signup form into a tenant:

1. resolve the slug and validate it (format + availability)
2. record a SignupRequest in ``processing``
3. create the identity with the identity provider
4. create the tenant with its subscription, settings, and admin membership
   in one store transaction
5. mark the SignupRequest ``completed`` and build the tenant URL

Any failure in steps 3 or 4 marks the SignupRequest ``failed``. A failure in
step 4 leaves no tenant rows behind, and the identity from step 3 is deleted
again on a best-effort basis. Runs are not idempotent.
"""

from __future__ import annotations

import logging
import uuid

from pydantic import BaseModel, EmailStr, Field

from app.core.config import Settings
from app.core.errors import ErrorReason, IdentityError, ProvisioningError
from app.services.hosts import tenant_url
from app.services.identity import IdentityProvider
from app.services.slugs import SlugValidator, slugify
from app.services.store import TenantProvisionRequest, TenantStore

logger = logging.getLogger(__name__)


class SignupData(BaseModel):
    company_name: str = Field(min_length=1, max_length=255)
    contact_name: str = Field(min_length=1, max_length=255)
    contact_email: EmailStr
    password: str = Field(max_length=128)
    phone: str | None = Field(default=None, max_length=50)
    # Empty means "derive from company_name"
    requested_slug: str = Field(default="", max_length=100)
    primary_use_case: str = Field(default="hedge_fund", max_length=64)
    aum_range: str = Field(default="under_10m", max_length=64)


class ProvisioningResult(BaseModel):
    success: bool
    tenant_id: uuid.UUID | None = None
    slug: str | None = None
    subdomain_url: str | None = None
    signup_request_id: uuid.UUID | None = None
    error: ErrorReason | None = None
    message: str | None = None

    @classmethod
    def failed(
        cls,
        error: ErrorReason,
        message: str,
        signup_request_id: uuid.UUID | None = None,
    ) -> ProvisioningResult:
        return cls(
            success=False,
            error=error,
            message=message,
            signup_request_id=signup_request_id,
        )


class ProvisioningPipeline:
    def __init__(
        self,
        store: TenantStore,
        identity: IdentityProvider,
        validator: SlugValidator,
        settings: Settings,
    ) -> None:
        self.store = store
        self.identity = identity
        self.validator = validator
        self.settings = settings

    async def provision(self, signup: SignupData, origin: str | None = None) -> ProvisioningResult:
        """Run the pipeline. Never raises; failures come back as a result."""
        try:
            return await self._provision(signup, origin)
        except Exception:
            logger.exception("Unexpected error while provisioning %s", signup.company_name)
            return ProvisioningResult.failed(
                ErrorReason.TENANT_CREATION_FAILED, "An unexpected error occurred"
            )

    async def _provision(self, signup: SignupData, origin: str | None) -> ProvisioningResult:
        slug = signup.requested_slug or slugify(signup.company_name)
        logger.info("Starting tenant provisioning for %s (slug %s)", signup.company_name, slug)

        validation = await self.validator.validate(slug)
        if not validation.available:
            logger.info("Slug %s rejected: %s", slug, validation.error)
            return ProvisioningResult.failed(validation.error, validation.message)

        try:
            signup_request_id = await self.store.create_signup_request(
                slug=slug,
                company_name=signup.company_name,
                contact_name=signup.contact_name,
                contact_email=signup.contact_email,
                phone=signup.phone,
            )
        except Exception:
            logger.exception("Failed to record signup request for %s", slug)
            return ProvisioningResult.failed(
                ErrorReason.SIGNUP_REQUEST_FAILED, "Failed to create signup request"
            )

        try:
            user = await self.identity.sign_up(
                signup.contact_email,
                signup.password,
                {"full_name": signup.contact_name, "company_name": signup.company_name},
            )
        except IdentityError as exc:
            logger.warning("Identity creation failed for signup %s: %s", signup_request_id, exc.message)
            await self._mark_failed(signup_request_id, exc.reason)
            return ProvisioningResult.failed(
                exc.reason,
                f"Failed to create user account: {exc.message}",
                signup_request_id,
            )
        except Exception:
            logger.exception("Identity provider error for signup %s", signup_request_id)
            await self._mark_failed(signup_request_id, ErrorReason.IDENTITY_CREATION_FAILED)
            return ProvisioningResult.failed(
                ErrorReason.IDENTITY_CREATION_FAILED,
                "Failed to create user account",
                signup_request_id,
            )

        try:
            provisioned = await self.store.provision_tenant(TenantProvisionRequest(
                user_id=user.id,
                company_name=signup.company_name,
                slug=slug,
                contact_name=signup.contact_name,
                contact_email=signup.contact_email,
                contact_phone=signup.phone,
                profile={
                    "primary_use_case": signup.primary_use_case,
                    "aum_range": signup.aum_range,
                },
            ))
        except ProvisioningError as exc:
            logger.error(
                "Tenant provisioning failed for signup %s: %s",
                signup_request_id,
                exc.message,
                extra={
                    "signup_request_id": str(signup_request_id),
                    "slug": slug,
                    "reason": exc.reason.value,
                },
            )
            await self._mark_failed(signup_request_id, exc.reason)
            await self._discard_identity(user.id, signup_request_id)
            return ProvisioningResult.failed(
                exc.reason,
                f"Failed to provision tenant: {exc.message}",
                signup_request_id,
            )
        except Exception:
            logger.exception(
                "Unexpected store error provisioning signup %s",
                signup_request_id,
                extra={"signup_request_id": str(signup_request_id), "slug": slug},
            )
            await self._mark_failed(signup_request_id, ErrorReason.TENANT_CREATION_FAILED)
            await self._discard_identity(user.id, signup_request_id)
            return ProvisioningResult.failed(
                ErrorReason.TENANT_CREATION_FAILED,
                "Failed to provision tenant",
                signup_request_id,
            )

        try:
            await self.store.complete_signup_request(signup_request_id, provisioned.tenant_id)
        except Exception:
            # The tenant exists; only the bookkeeping row is stale
            logger.exception(
                "Failed to mark signup %s completed",
                signup_request_id,
                extra={"signup_request_id": str(signup_request_id), "slug": slug},
            )

        logger.info("Tenant %s provisioned (%s)", slug, provisioned.tenant_id)
        return ProvisioningResult(
            success=True,
            tenant_id=provisioned.tenant_id,
            slug=provisioned.slug,
            subdomain_url=tenant_url(provisioned.slug, self.settings.platform_base_domain, origin),
            signup_request_id=signup_request_id,
        )

    async def _discard_identity(self, user_id: uuid.UUID, signup_request_id: uuid.UUID) -> None:
        """Compensate step 3 after the tenant could not be created."""
        try:
            await self.identity.delete_user(user_id)
        except Exception:
            logger.exception(
                "Could not remove identity %s after failed signup %s",
                user_id,
                signup_request_id,
                extra={"signup_request_id": str(signup_request_id), "user_id": str(user_id)},
            )

    async def _mark_failed(self, signup_request_id: uuid.UUID, reason: ErrorReason) -> None:
        # A stale request row must not stop the compensation that follows
        try:
            await self.store.mark_signup_failed(signup_request_id, reason)
        except Exception:
            logger.exception(
                "Failed to mark signup %s failed",
                signup_request_id,
                extra={"signup_request_id": str(signup_request_id), "reason": reason.value},
            )
