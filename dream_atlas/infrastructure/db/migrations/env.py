# dream_atlas/infrastructure/db/migrations/env.py
from __future__ import annotations

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from dream_atlas.config import settings
from dream_atlas.infrastructure.db.meta import Base

# register every table on Base.metadata
from dream_atlas.domain.conversation.entities.conversation import ChatMessage, ChatSession  # noqa: F401
from dream_atlas.domain.dream.entities.dream import Dream  # noqa: F401
from dream_atlas.domain.dream.entities.interpretation import DreamInterpretation  # noqa: F401
from dream_atlas.domain.summary.entities import AggregateSummary  # noqa: F401
from dream_atlas.domain.user.entities import Profile  # noqa: F401

config = context.config
config.set_main_option("sqlalchemy.url", settings().db_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
