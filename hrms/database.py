"""Async SQLAlchemy engine, session management and the atomic unit helper."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from hrms.config import settings

logger = logging.getLogger(__name__)

# Async engine for FastAPI
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.ENVIRONMENT == "development",
    pool_pre_ping=True,
)

# Async session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: yield an async database session."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def atomic(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """All-or-nothing block on *session*, run as a SAVEPOINT.

    The savepoint is released on exit. Any exception raised inside the
    block rolls back only the work done inside it; earlier uncommitted work
    in the session is kept, and committing stays with the outer unit of work.
    """
    try:
        async with session.begin_nested():
            yield session
    except Exception:
        logger.error("Atomic unit failed; rolled back to savepoint")
        raise
