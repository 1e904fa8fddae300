# dream_atlas/tests/conftest.py
import os
import logging

# the OpenAI client refuses to construct without a key; dependencies.py builds one at import
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
import pytest_asyncio
from uuid import uuid4

from dream_atlas.config import settings as _settings
from atlas_fakes import (
    FakeFetcher,
    FakeFrameExtractor,
    FakeStorage,
    InMemoryConversationRepository,
    InMemoryDreamRepository,
    InMemorySummaryRepository,
)

for name in (
    "asyncio",
    "sqlalchemy.pool",
    "sqlalchemy.engine.Engine",
    "httpx",
):
    logging.getLogger(name).setLevel(logging.WARNING)

# leave the application namespace free to speak at INFO
logging.getLogger("dream_atlas").setLevel(logging.INFO)

_settings.cache_clear()


@pytest.fixture
def user_id():
    return uuid4()


@pytest.fixture
def dream_repo():
    return InMemoryDreamRepository()


@pytest.fixture
def summary_repo():
    return InMemorySummaryRepository()


@pytest.fixture
def conversation_repo():
    return InMemoryConversationRepository()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def frames():
    return FakeFrameExtractor()


@pytest_asyncio.fixture
async def pg_session():
    """
    AsyncSession against a real Postgres, for repository tests.

    Set ATLAS_TEST_DB_URL (postgresql+asyncpg://...) to run them; tables are
    created fresh and dropped afterwards.
    """
    url = os.environ.get("ATLAS_TEST_DB_URL")
    if not url:
        pytest.skip("ATLAS_TEST_DB_URL not set")

    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
    from dream_atlas.infrastructure.db.meta import Base
    # register all tables
    from dream_atlas.domain.conversation.entities import conversation  # noqa: F401
    from dream_atlas.domain.dream.entities import dream, interpretation  # noqa: F401
    from dream_atlas.domain.summary import entities as summary_entities  # noqa: F401
    from dream_atlas.domain.user import entities as user_entities  # noqa: F401

    engine = create_async_engine(url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_sessionmaker(engine, expire_on_commit=False)() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()
