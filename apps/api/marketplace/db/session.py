"""Async engine and session factory for the marketplace database."""
from __future__ import annotations

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ..core.config import settings


def _connect_args() -> dict[str, object]:
    # asyncpg takes ``ssl`` directly rather than an ``sslmode`` query parameter.
    return {"ssl": True} if settings.database_ssl_required else {}


engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    pool_pre_ping=True,
    pool_size=settings.database_pool_size,
    connect_args=_connect_args(),
)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session; each service opens its own transaction on it."""

    async with SessionLocal() as session:
        yield session


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Factory for handlers that run independent queries concurrently."""

    return SessionLocal
