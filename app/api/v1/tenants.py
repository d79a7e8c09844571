"""Tenant context endpoints — what the current host resolves to."""

from fastapi import APIRouter, HTTPException, Request, status
from pydantic import BaseModel

from app.api.deps import TenantContext, request_origin
from app.core.config import get_settings
from app.models.tenant import TenantRead
from app.services.hosts import platform_admin_url, tenant_url
from app.services.resolver import ResolvedTenant

router = APIRouter(prefix="/tenants", tags=["tenants"])


class TenantLinks(BaseModel):
    platform_admin_url: str
    tenant_url: str | None = None


@router.get(
    "/resolve",
    response_model=ResolvedTenant,
    summary="Resolve the tenant context for this host",
)
async def resolve_tenant(context: TenantContext) -> ResolvedTenant:
    """Always 200: resolution errors are part of the payload."""
    return context


@router.get(
    "/current",
    response_model=TenantRead,
    summary="Get the tenant this host belongs to",
)
async def get_current_tenant(context: TenantContext) -> TenantRead:
    if context.is_platform_admin:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The platform admin host has no tenant",
        )
    if context.tenant is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": context.error.value if context.error else None,
                "subdomain": context.subdomain,
                "message": "Tenant not found",
            },
        )
    return context.tenant


@router.get("/links", response_model=TenantLinks, summary="Portal URLs for this host")
async def get_tenant_links(request: Request, context: TenantContext) -> TenantLinks:
    base_domain = get_settings().platform_base_domain
    origin = request_origin(request)
    return TenantLinks(
        platform_admin_url=platform_admin_url(base_domain, origin),
        tenant_url=tenant_url(context.tenant.slug, base_domain, origin) if context.tenant else None,
    )
