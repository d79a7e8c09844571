"""FastAPI dependencies: control plane services and tenant resolution."""

import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import sessionmaker

from app.core.cache import TenantCache
from app.core.config import get_settings
from app.core.database import async_session_factory
from app.services.identity import IdentityProvider, build_identity_provider
from app.services.provisioning import ProvisioningPipeline
from app.services.resolver import DomainResolver, ResolvedTenant
from app.services.slugs import SlugValidator
from app.services.store import SqlTenantStore, TenantStore

bearer_scheme = HTTPBearer(auto_error=False)


def get_session_factory() -> sessionmaker:
    """Session factory for services that open their own transactions."""
    return async_session_factory


SessionFactory = Annotated[sessionmaker, Depends(get_session_factory)]


def request_origin(request: Request) -> str:
    """Browser origin when sent, else the URL the request arrived on."""
    return request.headers.get("origin") or str(request.base_url).rstrip("/")


def get_tenant_cache(request: Request) -> TenantCache:
    # One cache per process, created with the app
    return request.app.state.tenant_cache


def get_store(session_factory: SessionFactory) -> TenantStore:
    return SqlTenantStore(session_factory, trial_period_days=get_settings().trial_period_days)


Store = Annotated[TenantStore, Depends(get_store)]
Cache = Annotated[TenantCache, Depends(get_tenant_cache)]


def get_resolver(store: Store, cache: Cache) -> DomainResolver:
    return DomainResolver(store, cache)


def get_slug_validator(store: Store) -> SlugValidator:
    return SlugValidator(store)


def get_identity_provider(session_factory: SessionFactory) -> IdentityProvider:
    return build_identity_provider(get_settings(), session_factory)


def get_pipeline(
    store: Store,
    identity: Annotated[IdentityProvider, Depends(get_identity_provider)],
    validator: Annotated[SlugValidator, Depends(get_slug_validator)],
) -> ProvisioningPipeline:
    return ProvisioningPipeline(store, identity, validator, get_settings())


async def resolve_request_tenant(
    request: Request,
    resolver: Annotated[DomainResolver, Depends(get_resolver)],
) -> ResolvedTenant:
    """Resolve the tenant context of the current request from its Host header."""
    host = request.headers.get("host", "")
    return await resolver.resolve(host, request.query_params)


async def require_platform_admin(
    context: Annotated[ResolvedTenant, Depends(resolve_request_tenant)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> ResolvedTenant:
    """Only the admin host, presenting the configured admin token, may pass."""
    if not context.is_platform_admin:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Not available on this host",
        )

    expected = get_settings().admin_api_token
    if credentials is None or not expected or not secrets.compare_digest(
        credentials.credentials, expected
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing admin token",
        )
    return context


# Typed shorthand for use in route signatures
TenantContext = Annotated[ResolvedTenant, Depends(resolve_request_tenant)]
PlatformAdmin = Annotated[ResolvedTenant, Depends(require_platform_admin)]
Validator = Annotated[SlugValidator, Depends(get_slug_validator)]
Pipeline = Annotated[ProvisioningPipeline, Depends(get_pipeline)]
