"""Dependency injection for FastAPI."""

from datetime import timedelta
from typing import Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from portfolio_tracker.config.settings import get_settings
from portfolio_tracker.core.locks import KeyedLocks
from portfolio_tracker.providers import PriceCacheRefreshJob, StubMarketDataProvider
from portfolio_tracker.repositories.sqlalchemy import (
    SqlAlchemyPositionRepository,
    SqlAlchemyPriceCacheRepository,
    get_db,
    get_session_factory,
)
from portfolio_tracker.services import (
    ConsolidationEngine,
    LedgerService,
    PortfolioService,
    PriceCache,
    RefreshCoordinator,
    ValuationEngine,
)

# Process-wide state shared by every request
_coordinator: Optional[RefreshCoordinator] = None
_key_locks: Optional[KeyedLocks] = None


def get_refresh_coordinator() -> RefreshCoordinator:
    """Provide the process-wide RefreshCoordinator."""
    global _coordinator
    if _coordinator is None:
        settings = get_settings()
        job = PriceCacheRefreshJob(
            provider=StubMarketDataProvider(),
            session_factory=get_session_factory(),
        )
        _coordinator = RefreshCoordinator(
            refresh_job=job,
            staleness_window=timedelta(minutes=settings.staleness_window_minutes),
            timeout_seconds=settings.refresh_timeout_seconds,
        )
    return _coordinator


def get_key_locks() -> KeyedLocks:
    """Provide the process-wide per-(ticker, account) locks."""
    global _key_locks
    if _key_locks is None:
        _key_locks = KeyedLocks()
    return _key_locks


def reset_dependencies() -> None:
    """Shut down and forget the process-wide state."""
    global _coordinator, _key_locks
    if _coordinator is not None:
        _coordinator.shutdown()
    _coordinator = None
    _key_locks = None


def get_position_repo(db: Session = Depends(get_db)) -> SqlAlchemyPositionRepository:
    """Provide PositionRepository instance."""
    return SqlAlchemyPositionRepository(db)


def get_cache_repo(db: Session = Depends(get_db)) -> SqlAlchemyPriceCacheRepository:
    """Provide PriceCacheRepository instance."""
    return SqlAlchemyPriceCacheRepository(db)


def get_ledger_service(
    position_repo: SqlAlchemyPositionRepository = Depends(get_position_repo),
) -> LedgerService:
    """Provide LedgerService instance."""
    return LedgerService(position_repo=position_repo)


def get_portfolio_service(
    position_repo: SqlAlchemyPositionRepository = Depends(get_position_repo),
    cache_repo: SqlAlchemyPriceCacheRepository = Depends(get_cache_repo),
    ledger: LedgerService = Depends(get_ledger_service),
    coordinator: RefreshCoordinator = Depends(get_refresh_coordinator),
    locks: KeyedLocks = Depends(get_key_locks),
) -> PortfolioService:
    """Provide PortfolioService instance."""
    return PortfolioService(
        ledger=ledger,
        consolidation=ConsolidationEngine(position_repo=position_repo, locks=locks),
        valuation=ValuationEngine(),
        price_cache=PriceCache(cache_repo=cache_repo),
        coordinator=coordinator,
    )
