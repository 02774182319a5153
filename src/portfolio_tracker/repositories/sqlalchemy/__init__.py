"""SQLAlchemy repository implementations."""

from portfolio_tracker.repositories.sqlalchemy.database import (
    Base,
    configure_database,
    create_db_engine,
    get_db,
    get_session_factory,
    init_db,
    reset_database,
)
from portfolio_tracker.repositories.sqlalchemy.position_repo import SqlAlchemyPositionRepository
from portfolio_tracker.repositories.sqlalchemy.cache_repo import SqlAlchemyPriceCacheRepository
from portfolio_tracker.repositories.sqlalchemy.refresh_state_repo import (
    SqlAlchemyRefreshStateRepository,
)

__all__ = [
    "Base",
    "configure_database",
    "create_db_engine",
    "get_db",
    "get_session_factory",
    "init_db",
    "reset_database",
    "SqlAlchemyPositionRepository",
    "SqlAlchemyPriceCacheRepository",
    "SqlAlchemyRefreshStateRepository",
]
