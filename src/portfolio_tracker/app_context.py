"""Application context for in-process service management.

Provides a centralized way to access the portfolio service without HTTP,
for scripts and embedding callers that drive the engine directly.
"""

from datetime import timedelta
from pathlib import Path
from typing import Optional

from portfolio_tracker.config.settings import Settings, set_settings, get_settings
from portfolio_tracker.core.locks import KeyedLocks
from portfolio_tracker.repositories.sqlalchemy import (
    SqlAlchemyPositionRepository,
    SqlAlchemyPriceCacheRepository,
    configure_database,
    get_session_factory,
)
from portfolio_tracker.providers import MarketDataProvider, PriceCacheRefreshJob, StubMarketDataProvider
from portfolio_tracker.services import (
    ConsolidationEngine,
    LedgerService,
    PortfolioService,
    PriceCache,
    RefreshCoordinator,
    ValuationEngine,
)


class AppContext:
    """
    In-process access to the portfolio service.

    Owns one database session, one refresh coordinator and one set of
    per-key locks for the lifetime of the context.
    """

    def __init__(
        self,
        data_dir: Optional[Path] = None,
        provider: Optional[MarketDataProvider] = None,
    ):
        self._data_dir = data_dir
        self._provider = provider
        self._session = None
        self._initialized = False

        self._coordinator: Optional[RefreshCoordinator] = None
        self._locks = KeyedLocks()
        self._portfolio_service: Optional[PortfolioService] = None

    def initialize(self, data_dir: Optional[Path] = None) -> None:
        """
        Initialize or reinitialize the application with a data directory.

        Args:
            data_dir: Data directory path. Uses default if not provided.
        """
        if data_dir:
            self._data_dir = data_dir

        self.close()

        settings = Settings(data_dir=self._data_dir)
        set_settings(settings)

        configure_database(f"sqlite:///{settings.get_data_dir() / 'portfolio.db'}")

        self._portfolio_service = None
        self._initialized = True

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def data_dir(self) -> Path:
        """Get the current data directory."""
        return get_settings().get_data_dir()

    def _get_session(self):
        if self._session is None:
            self._session = get_session_factory()()
        return self._session

    @property
    def coordinator(self) -> RefreshCoordinator:
        """The refresh coordinator shared by every call through this context."""
        if self._coordinator is None:
            settings = get_settings()
            job = PriceCacheRefreshJob(
                provider=self._provider or StubMarketDataProvider(),
                session_factory=get_session_factory(),
            )
            self._coordinator = RefreshCoordinator(
                refresh_job=job,
                staleness_window=timedelta(minutes=settings.staleness_window_minutes),
                timeout_seconds=settings.refresh_timeout_seconds,
            )
        return self._coordinator

    @property
    def portfolio(self) -> PortfolioService:
        """Get the PortfolioService instance."""
        if self._portfolio_service is None:
            session = self._get_session()
            position_repo = SqlAlchemyPositionRepository(session)
            self._portfolio_service = PortfolioService(
                ledger=LedgerService(position_repo=position_repo),
                consolidation=ConsolidationEngine(position_repo=position_repo, locks=self._locks),
                valuation=ValuationEngine(),
                price_cache=PriceCache(SqlAlchemyPriceCacheRepository(session)),
                coordinator=self.coordinator,
            )
        return self._portfolio_service

    def close(self) -> None:
        """Release the session and stop the refresh worker."""
        if self._session:
            self._session.close()
            self._session = None
        if self._coordinator is not None:
            self._coordinator.shutdown()
            self._coordinator = None
        self._portfolio_service = None


# Global application context
_app_context: Optional[AppContext] = None


def get_app_context() -> AppContext:
    """Get or create the global application context."""
    global _app_context
    if _app_context is None:
        _app_context = AppContext()
    return _app_context


def set_app_context(context: AppContext) -> None:
    """Set the global application context."""
    global _app_context
    _app_context = context
