from __future__ import annotations

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from hackteam.core.config import settings
from hackteam.db.base import Base
from hackteam import models  # noqa: F401  Ensure models are imported

config = context.config

# `alembic -x database_url=...` tem precedência sobre HACKTEAM_DATABASE_URL
database_url = context.get_x_argument(as_dictionary=True).get("database_url") or str(settings.database_url)
config.set_main_option("sqlalchemy.url", database_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _configure_kwargs(url: str) -> dict[str, object]:
    # SQLite não suporta ALTER TABLE completo; migrações usam batch mode
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    context.configure(url=database_url, literal_binds=True, **_configure_kwargs(database_url))

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, **_configure_kwargs(database_url))

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = async_engine_from_config(
        {"sqlalchemy.url": database_url},
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async def _run_migrations() -> None:
        async with connectable.connect() as connection:
            await connection.run_sync(do_run_migrations)
        await connectable.dispose()

    asyncio.run(_run_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
