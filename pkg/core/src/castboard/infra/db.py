from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.schema import MetaData

from castboard.infra.settings import settings

# Deterministic constraint/index names (prevents Alembic churn)
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


def _engine_kwargs(url: str, *, echo: bool) -> dict[str, Any]:
    """Build create_engine kwargs for the dialect behind ``url``.

    SQLite gets no pool sizing (its pools reject those arguments) and is
    opened with ``check_same_thread=False`` so sessions can move between
    worker threads. PostgreSQL gets the configured pool and connect timeout.
    """
    kwargs: dict[str, Any] = {"echo": echo, "pool_pre_ping": True, "future": True}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    elif url.startswith("postgresql"):
        kwargs.update(
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_timeout=settings.pool_timeout,
            connect_args={"connect_timeout": settings.connect_timeout},
        )
    return kwargs


def install_dialect_hooks(target: Engine) -> None:
    """Attach per-connection setup for the engine's dialect."""
    if target.dialect.name == "postgresql":

        @event.listens_for(target, "connect")
        def _set_search_path(dbapi_conn, _):
            with dbapi_conn.cursor() as cur:
                cur.execute("SET search_path TO public")

    elif target.dialect.name == "sqlite":
        # pysqlite defers BEGIN on its own, which breaks SAVEPOINT; let SQLAlchemy emit it
        @event.listens_for(target, "connect")
        def _configure_sqlite(dbapi_conn, _):
            dbapi_conn.isolation_level = None
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON")
            cur.close()

        # SQLite ignores FOR UPDATE. IMMEDIATE takes the write lock before the first
        # read, so a second writer waits and then sees the committed row.
        @event.listens_for(target, "begin")
        def _begin(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")


engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url, echo=settings.echo_sql))
install_dialect_hooks(engine)


SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    future=True,
)


def get_engine(db_url: str | None = None, for_test: bool = False) -> Engine:
    """Get or create a database engine.

    If ``for_test`` is True and ``settings.test_database_url`` is set, that URL is used.
    Otherwise falls back to the provided ``db_url`` or the default ``settings.database_url``.
    Returns the global engine when using the default, to avoid unnecessary engine creation.
    """
    if for_test and settings.test_database_url:
        chosen_url = settings.test_database_url
    else:
        chosen_url = db_url or settings.database_url

    if not db_url and not for_test and chosen_url == settings.database_url:
        return engine

    new_engine = create_engine(chosen_url, **_engine_kwargs(chosen_url, echo=False))
    install_dialect_hooks(new_engine)
    return new_engine
