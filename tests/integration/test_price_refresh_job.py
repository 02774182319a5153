"""
Integration tests for PriceCacheRefreshJob against SQLite.

Tests cover:
- Pricing every ledger ticker except CASH
- Persisted marker read back by the coordinator
- Stub provider determinism
"""

from datetime import timedelta
from decimal import Decimal

from portfolio_tracker.providers import (
    PRICE_CACHE_MARKER,
    PriceCacheRefreshJob,
    StubMarketDataProvider,
)
from portfolio_tracker.domain.models import RefreshOutcome
from portfolio_tracker.services import RefreshCoordinator

from tests.conftest import lot


class TestPriceCacheRefreshJob:
    """Tests for the provider-backed refresh job."""

    def test_run_prices_ledger_tickers_and_stamps_marker(
        self,
        ledger_service,
        cache_repo,
        refresh_state_repo,
        session_factory,
        deterministic_provider,
        fake_clock,
    ):
        """
        GIVEN a ledger holding AAPL, MSFT and CASH
        WHEN the refresh job runs
        THEN AAPL and MSFT are cached, CASH is never requested
        AND the marker records the clock time
        """
        ledger_service.bulk_append([
            lot("AAPL", "Acct1", "10", "100"),
            lot("MSFT", "Acct1", "1", "300"),
            lot("CASH", "Acct1", "500", "1"),
        ])
        job = PriceCacheRefreshJob(deterministic_provider, session_factory, clock=fake_clock)

        job.run(force=True)

        assert deterministic_provider.requests == [["AAPL", "MSFT"]]
        assert cache_repo.get("AAPL").price == Decimal("150")
        assert cache_repo.get("MSFT").price == Decimal("400")
        assert cache_repo.get("CASH") is None
        assert refresh_state_repo.get(PRICE_CACHE_MARKER).refreshed_at == fake_clock.now
        assert job.last_refreshed_at() == fake_clock.now

    def test_empty_ledger_still_stamps_marker(
        self,
        session_factory,
        deterministic_provider,
        fake_clock,
    ):
        job = PriceCacheRefreshJob(deterministic_provider, session_factory, clock=fake_clock)

        job.run(force=False)

        assert deterministic_provider.requests == []
        assert job.last_refreshed_at() == fake_clock.now

    def test_coordinator_reads_back_marker_after_restart(
        self,
        session_factory,
        deterministic_provider,
        fake_clock,
    ):
        """
        GIVEN a refresh persisted by an earlier coordinator
        WHEN a new coordinator serves a read 10 minutes later
        THEN it skips the refresh
        """
        job = PriceCacheRefreshJob(deterministic_provider, session_factory, clock=fake_clock)
        job.run(force=True)
        fake_clock.advance(minutes=10)

        coord = RefreshCoordinator(refresh_job=job, clock=fake_clock)
        try:
            result = coord.ensure_fresh()
        finally:
            coord.shutdown()

        assert result.outcome == RefreshOutcome.SKIPPED
        assert result.last_refreshed_at == fake_clock.now - timedelta(minutes=10)


class TestStubProvider:
    """Tests for the offline provider."""

    def test_known_tickers_have_fixed_prices(self):
        quotes = StubMarketDataProvider().get_quotes(["aapl"])

        assert quotes["AAPL"].last_price == Decimal("185.50")

    def test_unknown_tickers_are_seeded(self):
        first = StubMarketDataProvider(seed=7).get_quotes(["ZZZZ"])
        second = StubMarketDataProvider(seed=7).get_quotes(["ZZZZ"])

        assert first["ZZZZ"].last_price == second["ZZZZ"].last_price
        assert Decimal("50") <= first["ZZZZ"].last_price <= Decimal("250")
