"""
Pytest configuration and fixtures for portfolio tracker tests.

This module provides:
- In-memory SQLite database fixtures
- A controllable clock for staleness decisions
- Recording, failing and blocking refresh jobs
- Deterministic market data provider
- Service and repository fixtures
- FastAPI test client with dependency overrides
"""

import threading
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional

import pytest
from sqlalchemy import StaticPool
from sqlalchemy.orm import sessionmaker, Session
from fastapi.testclient import TestClient

from portfolio_tracker.main import app
from portfolio_tracker.api.deps import get_key_locks, get_refresh_coordinator
from portfolio_tracker.config.settings import Settings, reset_settings, set_settings
from portfolio_tracker.repositories.sqlalchemy.database import (
    Base,
    create_db_engine,
    get_db,
    reset_database,
)
# Import ORM models to register them with Base before creating tables
from portfolio_tracker.repositories.sqlalchemy import orm_models  # noqa: F401
from portfolio_tracker.repositories.sqlalchemy import (
    SqlAlchemyPositionRepository,
    SqlAlchemyPriceCacheRepository,
    SqlAlchemyRefreshStateRepository,
)
from portfolio_tracker.core.locks import KeyedLocks
from portfolio_tracker.core.timezone import EASTERN_TZ
from portfolio_tracker.domain.models import PriceCacheEntry
from portfolio_tracker.domain.views import Quote
from portfolio_tracker.providers import PriceCacheRefreshJob
from portfolio_tracker.services import (
    ConsolidationEngine,
    LedgerService,
    PortfolioService,
    PositionCreate,
    PriceCache,
    RefreshCoordinator,
    ValuationEngine,
)


# =============================================================================
# TIME HELPERS
# =============================================================================


def eastern_datetime(
    year: int,
    month: int,
    day: int,
    hour: int = 10,
    minute: int = 0,
    second: int = 0,
) -> datetime:
    """Create a localized datetime in US/Eastern timezone."""
    return EASTERN_TZ.localize(datetime(year, month, day, hour, minute, second))


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def fixed_now() -> datetime:
    """Fixed 'now' timestamp for deterministic tests."""
    return eastern_datetime(2024, 6, 15, 14, 30, 0)


@pytest.fixture
def fake_clock(fixed_now) -> FakeClock:
    return FakeClock(fixed_now)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="function")
def test_engine():
    """Create test database engine with shared in-memory SQLite."""
    reset_settings()

    engine = create_db_engine("sqlite:///:memory:", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def test_session(session_factory) -> Session:
    """Create test database session."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# REPOSITORY FIXTURES
# =============================================================================


@pytest.fixture
def position_repo(test_session) -> SqlAlchemyPositionRepository:
    """Provide test PositionRepository."""
    return SqlAlchemyPositionRepository(test_session)


@pytest.fixture
def cache_repo(test_session) -> SqlAlchemyPriceCacheRepository:
    """Provide test PriceCacheRepository."""
    return SqlAlchemyPriceCacheRepository(test_session)


@pytest.fixture
def refresh_state_repo(test_session) -> SqlAlchemyRefreshStateRepository:
    """Provide test RefreshStateRepository."""
    return SqlAlchemyRefreshStateRepository(test_session)


@pytest.fixture
def seed_prices(cache_repo, fixed_now) -> Callable[..., None]:
    """Write prices straight into the cache, bypassing any refresh job."""

    def _seed(**prices: str) -> None:
        for ticker, price in prices.items():
            cache_repo.upsert(
                PriceCacheEntry(
                    ticker=ticker,
                    price=Decimal(price),
                    last_refreshed_at=fixed_now,
                )
            )

    return _seed


# =============================================================================
# MARKET DATA AND REFRESH JOB FIXTURES
# =============================================================================


class DeterministicMarketProvider:
    """
    Deterministic market data provider for testing.

    Tickers outside FIXED_PRICES are left unpriced.
    """

    FIXED_PRICES = {
        "AAPL": Decimal("150.00"),
        "MSFT": Decimal("400.00"),
        "VTI": Decimal("250.00"),
        "SPY": Decimal("500.00"),
    }

    def __init__(self, as_of: Optional[datetime] = None):
        self._as_of = as_of or eastern_datetime(2024, 6, 15, 16, 0, 0)
        self.requests: list[list[str]] = []

    def get_quotes(self, tickers: list[str]) -> dict[str, Quote]:
        self.requests.append(list(tickers))
        return {
            t: Quote(ticker=t, last_price=self.FIXED_PRICES[t], as_of=self._as_of)
            for t in tickers
            if t in self.FIXED_PRICES
        }


class RecordingRefreshJob:
    """
    Refresh job that records every call.

    When given a session factory it writes ``prices`` into the cache on
    each run, like the real job would.
    """

    def __init__(
        self,
        prices: Optional[dict[str, str]] = None,
        session_factory: Optional[sessionmaker] = None,
        marker: Optional[datetime] = None,
    ):
        self.calls: list[bool] = []
        self.prices = dict(prices or {})
        self.marker = marker
        self._session_factory = session_factory

    @property
    def run_count(self) -> int:
        return len(self.calls)

    def run(self, force: bool) -> None:
        self.calls.append(force)
        if self._session_factory is None or not self.prices:
            return
        db = self._session_factory()
        try:
            repo = SqlAlchemyPriceCacheRepository(db)
            for ticker, price in self.prices.items():
                repo.upsert(PriceCacheEntry(ticker=ticker, price=Decimal(price)))
        finally:
            db.close()

    def last_refreshed_at(self) -> Optional[datetime]:
        return self.marker


class FailingRefreshJob:
    """Refresh job that always fails."""

    def __init__(self, marker: Optional[datetime] = None):
        self.calls: list[bool] = []
        self.marker = marker

    def run(self, force: bool) -> None:
        self.calls.append(force)
        raise ConnectionError("Network unavailable")

    def last_refreshed_at(self) -> Optional[datetime]:
        return self.marker


class BlockingRefreshJob:
    """
    Refresh job that blocks until released.

    ``started`` is set each time a run begins; ``release`` lets every
    waiting run finish. ``marker`` is what the persisted marker reports.
    """

    def __init__(self, marker: Optional[datetime] = None):
        self.calls: list[bool] = []
        self.marker = marker
        self.started = threading.Event()
        self.release = threading.Event()
        self._lock = threading.Lock()
        self.running = 0
        self.max_running = 0

    def run(self, force: bool) -> None:
        with self._lock:
            self.calls.append(force)
            self.running += 1
            self.max_running = max(self.max_running, self.running)
        self.started.set()
        try:
            self.release.wait(timeout=5)
        finally:
            with self._lock:
                self.running -= 1

    def last_refreshed_at(self) -> Optional[datetime]:
        return self.marker


@pytest.fixture
def deterministic_provider(fixed_now) -> DeterministicMarketProvider:
    return DeterministicMarketProvider(as_of=fixed_now)


@pytest.fixture
def recording_job(session_factory) -> RecordingRefreshJob:
    """Recording job that prices AAPL at 150 on every run."""
    return RecordingRefreshJob(prices={"AAPL": "150"}, session_factory=session_factory)


@pytest.fixture
def coordinator(recording_job, fake_clock) -> RefreshCoordinator:
    coord = RefreshCoordinator(refresh_job=recording_job, clock=fake_clock, timeout_seconds=5)
    yield coord
    coord.shutdown()


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def ledger_service(position_repo, fake_clock) -> LedgerService:
    """Provide test LedgerService."""
    return LedgerService(position_repo=position_repo, clock=fake_clock)


@pytest.fixture
def consolidation_engine(position_repo, fake_clock) -> ConsolidationEngine:
    """Provide test ConsolidationEngine."""
    return ConsolidationEngine(position_repo=position_repo, locks=KeyedLocks(), clock=fake_clock)


@pytest.fixture
def valuation_engine() -> ValuationEngine:
    return ValuationEngine()


@pytest.fixture
def price_cache(cache_repo) -> PriceCache:
    return PriceCache(cache_repo=cache_repo)


@pytest.fixture
def portfolio_service(
    ledger_service,
    consolidation_engine,
    valuation_engine,
    price_cache,
    coordinator,
) -> PortfolioService:
    """Provide test PortfolioService wired to the recording refresh job."""
    return PortfolioService(
        ledger=ledger_service,
        consolidation=consolidation_engine,
        valuation=valuation_engine,
        price_cache=price_cache,
        coordinator=coordinator,
    )


# =============================================================================
# API TEST CLIENT FIXTURE
# =============================================================================


@pytest.fixture
def api_coordinator(session_factory, deterministic_provider, fake_clock) -> RefreshCoordinator:
    """Coordinator backed by the real refresh job and a deterministic provider."""
    job = PriceCacheRefreshJob(
        provider=deterministic_provider,
        session_factory=session_factory,
        clock=fake_clock,
    )
    coord = RefreshCoordinator(refresh_job=job, clock=fake_clock, timeout_seconds=5)
    yield coord
    coord.shutdown()


@pytest.fixture
def client(session_factory, api_coordinator, tmp_path) -> TestClient:
    """Provide FastAPI test client with test database."""
    set_settings(Settings(data_dir=tmp_path))
    reset_database()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    locks = KeyedLocks()
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_refresh_coordinator] = lambda: api_coordinator
    app.dependency_overrides[get_key_locks] = lambda: locks
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    reset_database()
    reset_settings()


# =============================================================================
# HELPER FUNCTIONS (exported for use in tests)
# =============================================================================


def assert_decimal_equal(
    actual: Decimal,
    expected: Decimal,
    tolerance: Decimal = Decimal("0.01"),
) -> None:
    """Assert two Decimals are equal within tolerance."""
    diff = abs(Decimal(actual) - Decimal(expected))
    assert diff <= tolerance, f"Expected {expected}, got {actual} (diff={diff})"


def lot(
    ticker: str,
    account: str,
    quantity: str,
    cost_basis: str,
    position_type: Optional[str] = None,
) -> PositionCreate:
    """Build PositionCreate input from short string arguments."""
    return PositionCreate(
        ticker=ticker,
        account=account,
        quantity=Decimal(quantity),
        cost_basis=Decimal(cost_basis),
        position_type=position_type,
    )
