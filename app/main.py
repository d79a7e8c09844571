"""FastAPI application entrypoint."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1 import v1_router
from app.core.cache import TenantCache
from app.core.config import get_settings
from app.core.database import init_db

_settings = get_settings()

logging.basicConfig(
    level=_settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup: ensure tables exist and plans are seeded (use Alembic in production)
    await init_db()
    yield
    # Shutdown: nothing to clean up yet


app = FastAPI(
    title="Tenant Control Plane",
    version="0.1.0",
    description="Tenant resolution and self-service provisioning",
    lifespan=lifespan,
)

# Shared by every request in this process
app.state.tenant_cache = TenantCache(ttl_seconds=_settings.tenant_cache_ttl_seconds)

# ── CORS ─────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in _settings.allowed_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── API routes ───────────────────────────────────────────────
app.include_router(v1_router)


@app.get("/health", tags=["system"])
async def health_check() -> dict:
    return {"status": "ok"}
