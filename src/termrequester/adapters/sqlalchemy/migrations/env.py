"""Alembic runtime environment for the phenotype store."""

from __future__ import annotations

from alembic import context
from sqlalchemy import create_engine, pool
from sqlalchemy.engine import Connection

from termrequester.adapters.sqlalchemy.mappings import mapper_registry, start_mappers
from termrequester.config.storage import get_database_config

start_mappers()
target_metadata = mapper_registry.metadata

config = context.config

# SQLite cannot ALTER most constraints in place; batch mode rebuilds tables.
_OPTIONS: dict[str, object] = {"render_as_batch": True, "compare_type": True}


def _url() -> str:
    return config.get_main_option("sqlalchemy.url") or get_database_config().uri


def _migrate(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata, **_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


def run_offline() -> None:
    context.configure(url=_url(), target_metadata=target_metadata, literal_binds=True, **_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    shared = config.attributes.get("connection")
    if isinstance(shared, Connection):
        _migrate(shared)
        return
    engine = create_engine(_url(), poolclass=pool.NullPool, future=True)
    try:
        with engine.connect() as connection:
            _migrate(connection)
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
