"""SQLAlchemy engine construction shared by the SQL-backed catalogs."""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

_IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_catalog_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine for a catalog database.

    In-memory SQLite databases share one connection (StaticPool) so a catalog
    instance sees its own writes; SQLite connections enforce foreign keys.

    Args:
        url: SQLAlchemy database URL
        echo: Log emitted SQL

    Returns:
        Configured Engine
    """
    kwargs = {"echo": echo}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in _IN_MEMORY_URLS:
            kwargs["poolclass"] = StaticPool

    engine = create_engine(url, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine
