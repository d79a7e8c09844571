"""Tests for tenant resolution and system endpoints over HTTP."""

import pytest
from httpx import AsyncClient

from app.core.config import get_settings
from app.models.domain import CustomDomain
from app.models.tenant import Tenant, TenantStatus

ADMIN_HOST = {"Host": "admin.example.com"}
ADMIN_TOKEN = get_settings().admin_api_token


async def _add_tenant(session_factory, slug: str, status=TenantStatus.ACTIVE) -> Tenant:
    async with session_factory() as session:
        tenant = Tenant(name=f"{slug.title()} Capital", slug=slug, status=status)
        session.add(tenant)
        await session.commit()
    return tenant


async def _set_status(session_factory, tenant: Tenant, status: TenantStatus) -> None:
    async with session_factory() as session:
        row = await session.get(Tenant, tenant.id)
        row.status = status
        session.add(row)
        await session.commit()


@pytest.mark.asyncio
async def test_current_tenant_by_subdomain(client: AsyncClient, session_factory):
    tenant = await _add_tenant(session_factory, "acme")

    resp = await client.get("/v1/tenants/current", headers={"Host": "acme.example.com"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["id"] == str(tenant.id)
    assert data["slug"] == "acme"
    assert data["status"] == "active"


@pytest.mark.asyncio
async def test_current_tenant_by_custom_domain(client: AsyncClient, session_factory):
    tenant = await _add_tenant(session_factory, "acme")
    async with session_factory() as session:
        session.add(CustomDomain(tenant_id=tenant.id, domain="portal.acmefund.com", is_verified=True))
        await session.commit()

    resp = await client.get("/v1/tenants/current", headers={"Host": "portal.acmefund.com"})
    assert resp.status_code == 200
    assert resp.json()["slug"] == "acme"


@pytest.mark.asyncio
async def test_current_tenant_not_found(client: AsyncClient):
    resp = await client.get("/v1/tenants/current", headers={"Host": "ghost.example.com"})
    assert resp.status_code == 404
    detail = resp.json()["detail"]
    assert detail["error"] == "not_found"
    assert detail["subdomain"] == "ghost"


@pytest.mark.asyncio
async def test_suspended_tenant_is_not_leaked(client: AsyncClient, session_factory):
    await _add_tenant(session_factory, "acme", TenantStatus.SUSPENDED)

    resp = await client.get("/v1/tenants/resolve", headers={"Host": "acme.example.com"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["tenant"] is None
    assert data["error"] == "inactive"


@pytest.mark.asyncio
async def test_admin_host_resolution(client: AsyncClient):
    resp = await client.get("/v1/tenants/resolve", headers=ADMIN_HOST)
    assert resp.json()["is_platform_admin"] is True

    resp = await client.get("/v1/tenants/current", headers=ADMIN_HOST)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_localhost_tenant_override(client: AsyncClient, session_factory):
    await _add_tenant(session_factory, "acme")

    resp = await client.get(
        "/v1/tenants/current", params={"tenant": "acme"}, headers={"Host": "localhost:8000"}
    )
    assert resp.status_code == 200
    assert resp.json()["slug"] == "acme"

    resp = await client.get("/v1/tenants/resolve", headers={"Host": "localhost:8000"})
    data = resp.json()
    assert data["tenant"] is None
    assert data["error"] is None


@pytest.mark.asyncio
async def test_tenant_links_on_local_host(client: AsyncClient, session_factory):
    await _add_tenant(session_factory, "acme")

    resp = await client.get(
        "/v1/tenants/links",
        params={"tenant": "acme"},
        headers={"Host": "localhost:8000", "Origin": "http://localhost:8000"},
    )
    assert resp.json() == {
        "platform_admin_url": "http://localhost:8000",
        "tenant_url": "http://localhost:8000?tenant=acme",
    }


@pytest.mark.asyncio
async def test_tenant_links_in_production(client: AsyncClient, session_factory):
    await _add_tenant(session_factory, "acme")

    resp = await client.get("/v1/tenants/links", headers={"Host": "acme.example.com"})
    assert resp.json() == {
        "platform_admin_url": "https://admin.example.com",
        "tenant_url": "https://acme.example.com",
    }


@pytest.mark.asyncio
async def test_status_change_visible_after_cache_clear(client: AsyncClient, session_factory):
    tenant = await _add_tenant(session_factory, "acme")
    host = {"Host": "acme.example.com"}

    assert (await client.get("/v1/tenants/current", headers=host)).status_code == 200
    await _set_status(session_factory, tenant, TenantStatus.SUSPENDED)

    # Served from cache until it is cleared
    assert (await client.get("/v1/tenants/current", headers=host)).status_code == 200

    resp = await client.post(
        "/v1/system/cache/clear",
        headers={**ADMIN_HOST, "Authorization": f"Bearer {ADMIN_TOKEN}"},
    )
    assert resp.status_code == 200
    assert resp.json()["cleared"] >= 1

    resp = await client.get("/v1/tenants/current", headers=host)
    assert resp.status_code == 404
    assert resp.json()["detail"]["error"] == "inactive"


@pytest.mark.asyncio
async def test_cache_clear_requires_admin_token(client: AsyncClient):
    resp = await client.post("/v1/system/cache/clear", headers=ADMIN_HOST)
    assert resp.status_code == 401

    resp = await client.post(
        "/v1/system/cache/clear",
        headers={**ADMIN_HOST, "Authorization": "Bearer wrong-token"},
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_cache_clear_only_on_admin_host(client: AsyncClient):
    resp = await client.post(
        "/v1/system/cache/clear",
        headers={"Host": "acme.example.com", "Authorization": f"Bearer {ADMIN_TOKEN}"},
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_system_health(client: AsyncClient):
    resp = await client.get("/v1/system/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    # SQLite has no version() function
    assert data["database"]["status"] == "ok"
    assert data["database"]["latency_ms"] is not None


@pytest.mark.asyncio
async def test_detailed_health_reports_config(client: AsyncClient):
    resp = await client.get(
        "/v1/system/health/detailed",
        headers={**ADMIN_HOST, "Authorization": f"Bearer {ADMIN_TOKEN}"},
    )
    assert resp.status_code == 200
    config = resp.json()["config"]
    assert config["encryption_configured"] is True
    assert config["platform_base_domain"] == "example.com"


@pytest.mark.asyncio
async def test_root_health_check(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
