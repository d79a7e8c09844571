"""System endpoints — database health and tenant cache administration."""

import platform
import sys
import time
from urllib.parse import urlparse, urlunparse

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.api.deps import Cache, PlatformAdmin, SessionFactory
from app.core.config import get_settings

router = APIRouter(prefix="/system", tags=["system"])

_start_time = time.time()


class ServiceHealth(BaseModel):
    status: str  # "ok" or "error"
    detail: str | None = None
    version: str | None = None
    latency_ms: int | None = None


class HealthResponse(BaseModel):
    status: str
    database: ServiceHealth
    cached_entries: int


class DetailedHealthResponse(HealthResponse):
    uptime_seconds: int
    python_version: str
    platform: str
    config: dict


class CacheClearResponse(BaseModel):
    cleared: int


@router.get("/health", response_model=HealthResponse)
async def system_health(session_factory: SessionFactory, cache: Cache) -> HealthResponse:
    """Check connectivity to the tenant database."""
    db = await _check_database(session_factory)
    return HealthResponse(status=db.status, database=db, cached_entries=len(cache))


@router.get("/health/detailed", response_model=DetailedHealthResponse)
async def system_health_detailed(
    _admin: PlatformAdmin, session_factory: SessionFactory, cache: Cache
) -> DetailedHealthResponse:
    settings = get_settings()
    db = await _check_database(session_factory)
    return DetailedHealthResponse(
        status=db.status,
        database=db,
        cached_entries=len(cache),
        uptime_seconds=int(time.time() - _start_time),
        python_version=sys.version.split()[0],
        platform=platform.platform(),
        config={
            "database_url": _mask_url(settings.database_url),
            "platform_base_domain": settings.platform_base_domain,
            "tenant_cache_ttl_seconds": settings.tenant_cache_ttl_seconds,
            "trial_period_days": settings.trial_period_days,
            "identity_provider": settings.identity_provider,
            "encryption_configured": bool(settings.encryption_key),
            "jwt_configured": bool(settings.jwt_secret_key),
        },
    )


@router.post("/cache/clear", response_model=CacheClearResponse)
async def clear_tenant_cache(_admin: PlatformAdmin, cache: Cache) -> CacheClearResponse:
    """Drop every memoized resolution, e.g. after a tenant changed status."""
    cleared = len(cache)
    cache.clear()
    return CacheClearResponse(cleared=cleared)


# ── Helpers ──────────────────────────────────────────────────


async def _check_database(session_factory) -> ServiceHealth:
    try:
        async with session_factory() as session:
            t0 = time.monotonic()
            await session.execute(text("SELECT 1"))
            latency = int((time.monotonic() - t0) * 1000)
            # Works on PostgreSQL; SQLite has no version() function
            version_short = None
            try:
                result = await session.execute(text("SELECT version()"))
                version_str = result.scalar_one_or_none() or ""
                version_short = version_str.split(",")[0] if version_str else None
            except SQLAlchemyError:
                pass
        return ServiceHealth(status="ok", version=version_short, latency_ms=latency)
    except (SQLAlchemyError, OSError) as exc:
        return ServiceHealth(status="error", detail=str(exc)[:200])


def _mask_url(url: str) -> str:
    """Mask credentials in database URLs."""
    if "://" not in url:
        return url
    parsed = urlparse(url)
    if parsed.password:
        masked = parsed._replace(
            netloc=f"{parsed.username}:***@{parsed.hostname}"
            + (f":{parsed.port}" if parsed.port else "")
        )
        return urlunparse(masked)
    return url
