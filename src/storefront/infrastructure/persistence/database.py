"""Database utilities: engine, session factory and schema creation."""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from storefront.config.logging import get_logger
from storefront.config.settings import DatabaseSettings

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Base model for SQLAlchemy mappings."""


def create_db_engine(settings: DatabaseSettings) -> Engine:
    """Build an engine for ``settings.url``.

    SQLite has no row locks, so every transaction there starts with
    ``BEGIN IMMEDIATE``: writers are serialized for the whole unit of
    work and a second writer waits up to ``busy_timeout`` seconds.
    """
    url = make_url(settings.url)
    if url.get_backend_name() != "sqlite":
        return create_engine(url, echo=settings.echo, pool_pre_ping=True)

    if url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(
        url,
        echo=settings.echo,
        connect_args={"check_same_thread": False, "timeout": settings.busy_timeout},
    )
    _serialize_sqlite_writers(engine)
    return engine


def _serialize_sqlite_writers(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:
        # Let SQLAlchemy emit BEGIN itself instead of pysqlite.
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Ensure that the database schema exists."""
    from storefront.infrastructure.persistence import orm  # noqa: F401 - registers tables

    Base.metadata.create_all(bind=engine)
    logger.info("database_initialized", url=engine.url.render_as_string(hide_password=True))


def drop_db(engine: Engine) -> None:
    from storefront.infrastructure.persistence import orm  # noqa: F401 - registers tables

    Base.metadata.drop_all(bind=engine)
