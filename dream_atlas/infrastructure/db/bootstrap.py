# dream_atlas/infrastructure/db/bootstrap.py
"""
Async engine / session lifecycle.

`init_engine` is called once at application start-up (and by the test
fixtures); everything else borrows sessions from the module-level factory.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from dream_atlas.config import Settings

logger = logging.getLogger(__name__)

engine: Optional[AsyncEngine] = None
SessionLocal: Optional[async_sessionmaker[AsyncSession]] = None


async def init_engine(cfg: Settings) -> None:
    global engine, SessionLocal
    if engine is not None:
        await engine.dispose()
    engine = create_async_engine(cfg.db_url, pool_pre_ping=True)
    SessionLocal = async_sessionmaker(engine, expire_on_commit=False)
    logger.info("Database engine initialised")


async def dispose_engine() -> None:
    global engine, SessionLocal
    if engine is not None:
        await engine.dispose()
    engine = None
    SessionLocal = None


@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession, None]:
    """Open a session, roll back on error, always close."""
    if SessionLocal is None:
        raise RuntimeError("init_engine() has not been called")
    session = SessionLocal()
    try:
        yield session
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with session_scope() as session:
        yield session
