"""
Dominion Ops - Database Connection
==================================

Async SQLAlchemy setup. The proposal engine is handed a session factory
rather than a session; every submission, materialization and audit write
opens its own unit of work.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from dominion.core.config import settings


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


# ==========================================================================
# Engine Setup
# ==========================================================================

def create_engine(url: Optional[str] = None) -> AsyncEngine:
    """Create async database engine with connection pooling."""
    url = url or settings.DATABASE_URL

    # SQLite doesn't support pool_size/max_overflow
    if "sqlite" in url:
        return create_async_engine(
            url,
            echo=settings.DATABASE_ECHO,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(
        url,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        echo=settings.DATABASE_ECHO,
        pool_pre_ping=True,
    )


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory used by the proposal engine and the audit sink."""
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = create_engine()
AsyncSessionLocal = create_session_factory(engine)


# ==========================================================================
# Lifecycle
# ==========================================================================

async def init_db(bind: Optional[AsyncEngine] = None) -> None:
    """Initialize database (create tables if not exist)."""
    bind = bind or engine
    async with bind.begin() as conn:
        # Import all models to register them
        from dominion.core import models  # noqa: F401
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()
