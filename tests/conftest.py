"""Shared test fixtures — async SQLite file DB, tenant cache, and test client."""

import os

# Settings are read once at import time; configure them before importing the app
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENCRYPTION_KEY", "MDEyMzQ1Njc4OWFiY2RlZjAxMjM0NTY3ODlhYmNkZWY=")
os.environ.setdefault("ENCRYPTION_KEY_ID", "k1")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret")
os.environ.setdefault("ADMIN_API_TOKEN", "test-admin-token")
os.environ.setdefault("PLATFORM_BASE_DOMAIN", "example.com")

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from app.api.deps import get_session_factory  # noqa: E402
from app.core.database import init_db  # noqa: E402
from app.main import app  # noqa: E402
from app.services.store import SqlTenantStore  # noqa: E402


@pytest.fixture
async def engine(tmp_path):
    # A file DB so concurrent sessions get their own connections
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'control_plane.db'}", echo=False)
    yield eng
    await eng.dispose()


@pytest.fixture
async def session_factory(engine) -> sessionmaker:
    """Session factory bound to a freshly created and seeded test database."""
    factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await init_db(engine, factory)
    return factory


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as sess:
        yield sess
        await sess.rollback()


@pytest.fixture
def store(session_factory) -> SqlTenantStore:
    return SqlTenantStore(session_factory)


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async test client bound to the test database."""
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.state.tenant_cache.clear()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    app.state.tenant_cache.clear()
