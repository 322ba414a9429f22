"""
Database connection management for SkillSwap.

Uses SQLAlchemy 2.0 async API with asyncpg for PostgreSQL. SQLite
(aiosqlite) URLs are accepted for local runs and tests.
"""

import logging
from typing import AsyncGenerator

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from skillswap.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


def _get_database_url() -> str:
    """Get the effective database URL from settings."""
    return settings.effective_database_url


def _engine_kwargs(url: str) -> dict:
    """Connection pool settings; only PostgreSQL gets a sized pool."""
    if url.startswith("postgresql"):
        return {
            "pool_size": 10,
            "max_overflow": 20,
            "pool_recycle": 3600,
            "pool_pre_ping": True,  # Verify connections before use
        }
    return {}


_db_url = _get_database_url()

engine = create_async_engine(
    _db_url,
    echo=settings.database_echo,
    **_engine_kwargs(_db_url),
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting async database sessions.

    One session (and one transaction) per request: committed when the
    endpoint returns, rolled back if anything raises.

    Usage in FastAPI:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db():
    """
    Initialize database tables and the default admin account.

    Should be called on application startup.
    """
    # Import models to ensure they are registered with Base
    from skillswap.db import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await _ensure_default_admin()


async def _ensure_default_admin():
    """Create the configured admin account if no admin exists."""
    from skillswap.db.models import UserDB
    from skillswap.services.auth_service import hash_password

    async with AsyncSessionLocal() as session:
        async with session.begin():
            result = await session.execute(
                select(func.count(UserDB.id)).where(UserDB.role == "admin")
            )
            if result.scalar():
                return
            session.add(UserDB(
                name=settings.admin_name,
                email=settings.admin_email.lower(),
                password_hash=hash_password(settings.admin_password),
                role="admin",
            ))
    logger.info("Created default admin account %s", settings.admin_email)
