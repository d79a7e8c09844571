"""Tenant resolution — map a request's host and query to a tenant context.

Decision order, first match wins:

1. ``admin.<domain>``                   → platform-admin surface (no store access)
2. local host with ``?tenant=<slug>``   → slug lookup, host parsing bypassed
3. verified custom domain               → mapped tenant (must be active)
4. ``<slug>.<domain>`` (not ``www``)    → slug lookup
5. anything else                        → public context, no tenant

Every store lookup is memoized in a TenantCache, negative results included.
Errors are reported in the result, never raised.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from pydantic import BaseModel

from app.core.cache import TenantCache, domain_key, tenant_key
from app.core.errors import ErrorReason
from app.models.tenant import TenantRead
from app.services.hosts import is_local_host, normalize_host
from app.services.slugs import check_slug_format
from app.services.store import TenantStore

logger = logging.getLogger(__name__)

TENANT_QUERY_PARAM = "tenant"


class ResolvedTenant(BaseModel):
    tenant: TenantRead | None = None
    is_platform_admin: bool = False
    subdomain: str | None = None
    error: ErrorReason | None = None


class DomainResolver:
    def __init__(self, store: TenantStore, cache: TenantCache) -> None:
        self.store = store
        self.cache = cache

    async def resolve(
        self, host: str, query_params: Mapping[str, str] | None = None
    ) -> ResolvedTenant:
        query_params = query_params or {}
        host = normalize_host(host)
        labels = host.split(".")

        if len(labels) >= 3 and labels[0] == "admin":
            return ResolvedTenant(is_platform_admin=True)

        if is_local_host(host):
            slug = query_params.get(TENANT_QUERY_PARAM)
            if slug:
                return await self._resolve_slug(slug)
            return ResolvedTenant()

        try:
            by_domain = await self._lookup_domain(host)
        except Exception:
            logger.exception("Custom domain lookup failed for %s", host)
            return ResolvedTenant(error=ErrorReason.STORE_UNAVAILABLE)
        if by_domain is not None:
            return by_domain

        if len(labels) >= 3 and labels[0] != "www":
            return await self._resolve_slug(labels[0])

        return ResolvedTenant()

    async def _lookup_domain(self, host: str) -> ResolvedTenant | None:
        """Resolve a verified custom domain; None means no mapping exists."""
        key = domain_key(host)
        entry = self.cache.get(key)
        if entry is None:
            tenant = await self.store.get_tenant_by_domain(host)
            error = ErrorReason.INACTIVE if tenant and not tenant.is_active else None
            entry = self.cache.set(key, tenant if error is None else None, error)

        if entry.error is not None:
            return ResolvedTenant(error=entry.error)
        if entry.tenant is None:
            return None
        return ResolvedTenant(tenant=entry.tenant, subdomain=entry.tenant.slug)

    async def _resolve_slug(self, slug: str) -> ResolvedTenant:
        key = tenant_key(slug)
        entry = self.cache.get(key)
        if entry is None:
            if check_slug_format(slug) is not None:
                entry = self.cache.set(key, None, ErrorReason.INVALID_SUBDOMAIN)
            else:
                try:
                    tenant = await self.store.get_tenant_by_slug(slug)
                except Exception:
                    logger.exception("Tenant lookup failed for slug %s", slug)
                    return ResolvedTenant(subdomain=slug, error=ErrorReason.STORE_UNAVAILABLE)
                if tenant is None:
                    entry = self.cache.set(key, None, ErrorReason.NOT_FOUND)
                elif not tenant.is_active:
                    entry = self.cache.set(key, None, ErrorReason.INACTIVE)
                else:
                    entry = self.cache.set(key, tenant)

        return ResolvedTenant(tenant=entry.tenant, subdomain=slug, error=entry.error)

