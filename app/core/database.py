"""Async database engine and session factory."""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

import app.models  # noqa: F401  (populates SQLModel.metadata)
from app.core.config import get_settings
from app.services.store import seed_reference_data

settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    echo=False,
    pool_pre_ping=True,
)

async_session_factory = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db(
    bind: AsyncEngine | None = None,
    session_factory: sessionmaker | None = None,
) -> None:
    """Create all tables and seed reference data. Use Alembic migrations in production."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    async with (session_factory or async_session_factory)() as session:
        await seed_reference_data(session)
