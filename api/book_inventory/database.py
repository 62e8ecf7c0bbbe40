# book_inventory/database.py
"""
Database handle for Book Inventory.

Uses SQLAlchemy 2.0 async (asyncpg in production, aiosqlite for local runs).
The handle is built by the application lifespan and passed around
explicitly; nothing here is created on first access.
"""
from __future__ import annotations
from typing import Any, AsyncGenerator, Dict
from contextlib import asynccontextmanager

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool
from sqlalchemy import text

# ============================================================================
# Base class for all ORM models
# ============================================================================

class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


# ============================================================================
# Engine and Session Factory
# ============================================================================

def _engine_kwargs(url: str, echo: bool, pool_size: int, max_overflow: int) -> Dict[str, Any]:
    if url.startswith("sqlite"):
        kwargs: Dict[str, Any] = {
            "echo": echo,
            "connect_args": {"check_same_thread": False},
        }
        # in-memory database must live on a single shared connection
        if url.rstrip("/").endswith(":") or ":memory:" in url:
            kwargs["poolclass"] = StaticPool
        return kwargs
    return {
        "echo": echo,
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": True,  # Verify connections before use
    }


class Database:
    """Owns the async engine and session factory for one process."""

    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
    ):
        self.url = url
        self.engine: AsyncEngine = create_async_engine(
            url, **_engine_kwargs(url, echo, pool_size, max_overflow)
        )
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings) -> "Database":
        return cls(
            settings.database_url(),
            echo=settings.DB_ECHO,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
        )

    async def create_all(self) -> None:
        """Create missing tables (local runs and tests; production uses migrations)."""
        # models must be imported so that they register on Base.metadata
        from book_inventory import db_models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close database connections."""
        await self.engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Context manager for database session (for use outside FastAPI).

        Usage:
            async with db.session() as session:
                result = await session.execute(...)
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def check_health(self) -> dict:
        """Check database connectivity and return status."""
        try:
            async with self.session() as session:
                result = await session.execute(text("SELECT 1"))
                result.scalar()
            return {"status": "healthy", "database": "connected"}
        except Exception as e:
            return {"status": "unhealthy", "database": "disconnected", "error": str(e)}


# ============================================================================
# FastAPI dependencies
# ============================================================================

def get_database(request: Request) -> Database:
    return request.app.state.db


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for FastAPI - provides database session.

    Usage:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_session)):
            ...
    """
    async with get_database(request).session() as session:
        yield session
