"""Engine and session factory construction."""

from typing import Optional

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import sessionmaker


def _enable_sqlite_foreign_keys(engine: Engine) -> None:
    # SQLite ignores foreign keys unless asked per connection.
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def make_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """Create an engine for ``database_url``.

    When no URL is given, ``DB_URL`` is read through
    :func:`competitii.config.load_settings` (``.env`` included), with relative
    SQLite paths resolved against the project root.
    """
    if database_url is None:
        from ..config import load_settings

        database_url = load_settings().db_url

    engine = create_engine(database_url, echo=echo, future=True)
    if engine.dialect.name == "sqlite":
        _enable_sqlite_foreign_keys(engine)
    return engine


def get_sessionmaker(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        expire_on_commit=False,  # Records are built from rows after commit
        future=True,
    )
