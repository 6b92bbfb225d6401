"""Async database engine and session lifecycle."""

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import DDL, event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from session_rag.core.settings import DatabaseConfig


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


event.listen(
    Base.metadata,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS vector").execute_if(dialect="postgresql"),
)


def create_engine(config: DatabaseConfig) -> AsyncEngine:
    """Create an async engine.

    Vectors travel as pgvector text literals, converted by the ``Vector``
    column type; no asyncpg binary codec is registered for them.
    """
    return create_async_engine(
        config.async_url,
        pool_size=5,
        max_overflow=5,
        pool_recycle=3600,
        pool_pre_ping=True,
        echo=config.echo,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build the session factory bound to ``engine``."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@asynccontextmanager
async def open_database(
    config: DatabaseConfig,
) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Own the engine for one command invocation and dispose it on exit."""
    engine = create_engine(config)
    try:
        yield create_session_factory(engine)
    finally:
        await engine.dispose()


async def create_schema(engine: AsyncEngine) -> None:
    """Create the pgvector extension, tables and indexes if missing."""
    # Register mapped tables on Base.metadata
    import session_rag.models.chunk  # noqa: F401
    import session_rag.models.session  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Provide a transactional session: commit on success, roll back on error."""
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
