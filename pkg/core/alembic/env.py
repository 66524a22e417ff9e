"""Alembic environment for the Castboard schema (``src`` is on sys.path via alembic.ini)."""

import os
from logging.config import fileConfig

from alembic import context  # type: ignore
from sqlalchemy import engine_from_config, pool

import castboard.domain.entities  # noqa: F401  registers every table on Base.metadata
from castboard.infra.db import Base
from castboard.infra.settings import settings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def include_object(object, name, type_, reflected, compare_to):
    return not (type_ == "table" and name == "alembic_version")


def _choose_url() -> str:
    """DATABASE_URL, or TEST_DATABASE_URL when ALEMBIC_USE_TEST_DB=1 and it is set."""
    if os.getenv("ALEMBIC_USE_TEST_DB") == "1" and settings.test_database_url:
        return settings.test_database_url
    return settings.database_url


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=True,
        include_object=include_object,
        **kwargs,
    )


def run_migrations_offline() -> None:
    _configure(url=_choose_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    config.set_main_option("sqlalchemy.url", _choose_url())
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
        future=True,
    )
    with connectable.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
