"""Alembic environment. Migrations run over a sync driver derived from QL_DATABASE_URL."""

from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from questline.config import get_settings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def get_metadata():
    from questline.db import models  # noqa: F401  (registers tables on Base.metadata)
    from questline.db.base import Base

    return Base.metadata


def sync_database_url() -> str:
    """Swap the async driver in the configured URL for its sync counterpart."""
    url = get_settings().database_url
    if url.startswith("postgresql+asyncpg"):
        return url.replace("postgresql+asyncpg", "postgresql+psycopg2", 1)
    if "+aiosqlite" in url:
        return url.replace("+aiosqlite", "", 1)
    return url


def run_migrations_offline() -> None:
    """Emit SQL without a database connection."""
    context.configure(url=sync_database_url(), target_metadata=get_metadata(), literal_binds=True)

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(sync_database_url(), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=get_metadata())

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
