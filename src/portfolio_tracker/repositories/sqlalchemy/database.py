"""
Engine and session management.

Request handlers and the price-refresh worker thread write the same SQLite
file through separate sessions. Every SQLite connection is opened in WAL
mode with a busy timeout, so readers never block the refresh job and two
writers queue on the lock instead of failing with "database is locked".
"""

from typing import Generator, Optional

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from portfolio_tracker.config.settings import get_settings

Base = declarative_base()

# Module-level database state, replaced by configure_database()
_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def create_db_engine(
    url: str,
    busy_timeout_ms: Optional[int] = None,
    **kwargs,
) -> Engine:
    """Create an engine; SQLite URLs get cross-thread access and the pragmas above."""
    db_url = make_url(url)
    if db_url.get_backend_name() != "sqlite":
        return create_engine(db_url, **kwargs)

    kwargs.setdefault("connect_args", {"check_same_thread": False})
    engine = create_engine(db_url, **kwargs)

    if busy_timeout_ms is None:
        busy_timeout_ms = get_settings().sqlite_busy_timeout_ms
    on_disk = db_url.database not in (None, "", ":memory:")

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        try:
            if on_disk:
                cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
        finally:
            cursor.close()

    return engine


def configure_database(url: str) -> None:
    """Point the module at ``url`` and create any missing tables."""
    global _engine, _session_factory

    reset_database()
    _engine = create_db_engine(url)
    _session_factory = sessionmaker(autocommit=False, autoflush=False, bind=_engine)

    from portfolio_tracker.repositories.sqlalchemy import orm_models  # noqa: F401
    Base.metadata.create_all(bind=_engine)


def init_db() -> None:
    """Initialize the database named by the current settings."""
    configure_database(get_settings().get_database_url())


def get_session_factory() -> sessionmaker:
    """Return the session factory, initializing from settings on first use."""
    if _session_factory is None:
        init_db()
    return _session_factory


def get_db() -> Generator[Session, None, None]:
    """Dependency that provides a database session."""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def reset_database() -> None:
    """Dispose the engine so the next use reconfigures from settings."""
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()

    _engine = None
    _session_factory = None
