"""
Bookshelf database bindings and functions using sqlalchemy
"""

import logging
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine as _Engine, make_url
from sqlalchemy.orm import declarative_base, sessionmaker, Session


DEFAULT_DATABASE_URL: str = "sqlite://"
PRINT_SQLITE_WARNING: bool = True

Base = declarative_base()
_engine: Optional[_Engine] = None
_make_session: Optional[sessionmaker] = None
_logger: logging.Logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, _):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _build_engine(database_url: str, echo: bool) -> _Engine:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return create_engine(url, echo=echo)

    if url.database in (None, "", ":memory:"):
        _logger.warning("Using the in-memory sqlite3 database loses all data when the program stops.")
    if PRINT_SQLITE_WARNING:
        _logger.warning(
            "Using a sqlite database is supported for development and testing environments "
            "only. You should use a production-grade database server for deployment."
        )

    engine = create_engine(url, echo=echo, connect_args={"check_same_thread": False})
    event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def init(database_url: str, echo: bool = True, create_all: bool = True):
    """
    Initialize the database bindings, replacing any previously created engine

    Call this once at program startup, before anything accesses the database.
    Otherwise the non-persistent ``DEFAULT_DATABASE_URL`` is used on first access.

    SQLite connections get foreign key enforcement switched on, since removing
    an author relies on the ``ON DELETE CASCADE`` of the books table.

    :param database_url: the full URL to connect to the database
    :param echo: whether all SQLAlchemy magic should print to screen
    :param create_all: whether the metadata of the declarative base should
        be used to create all non-existing tables in the database
    """

    global _engine, _make_session
    dispose()

    _engine = _build_engine(database_url, echo)
    if create_all:
        Base.metadata.create_all(bind=_engine)
    _make_session = sessionmaker(autoflush=False, bind=_engine)
    _logger.debug(f"Database bindings initialized for {_engine.url!r}")


def dispose():
    """
    Close all pooled connections and forget the current engine
    """

    global _engine, _make_session
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _make_session = None


def _ensure_initialized(obj: str):
    if _engine is None or _make_session is None:
        _logger.warning(
            f"Database {obj} not initialized! Falling back to {DEFAULT_DATABASE_URL!r}. "
            f"Call 'init' once at program startup to use a persistent database."
        )
        init(DEFAULT_DATABASE_URL)


def get_engine() -> _Engine:
    _ensure_initialized("engine")
    return _engine


def get_new_session() -> Session:
    _ensure_initialized("session maker")
    return _make_session()
