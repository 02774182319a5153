"""Price refresh job contract and the provider-backed implementation."""

import logging
from datetime import datetime
from typing import Callable, Optional, Protocol

from sqlalchemy.orm import Session

from portfolio_tracker.core.timezone import Clock, now_eastern
from portfolio_tracker.domain.models import CASH_TICKER, PriceCacheEntry, RefreshMarker
from portfolio_tracker.providers.market_data_provider import MarketDataProvider
from portfolio_tracker.repositories.sqlalchemy import (
    SqlAlchemyPositionRepository,
    SqlAlchemyPriceCacheRepository,
    SqlAlchemyRefreshStateRepository,
)

logger = logging.getLogger(__name__)

PRICE_CACHE_MARKER = "price_cache"


class RefreshJob(Protocol):
    """
    Contract of the job that refreshes the price cache.

    ``run`` raises on failure and must be safe to invoke twice in quick
    succession. ``last_refreshed_at`` reads back the persisted marker.
    """

    def run(self, force: bool) -> None:
        """Refresh the price cache."""
        ...

    def last_refreshed_at(self) -> Optional[datetime]:
        """Return when the cache was last refreshed, if ever."""
        ...


class PriceCacheRefreshJob:
    """
    Refresh job that prices every ledger ticker through a MarketDataProvider.

    Opens its own session per call so it can run on a worker thread.
    CASH is never sent to the provider.
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        session_factory: Callable[[], Session],
        clock: Clock = now_eastern,
    ):
        self._provider = provider
        self._session_factory = session_factory
        self._clock = clock

    def run(self, force: bool) -> None:
        """Fetch quotes, upsert the price cache and stamp the marker."""
        db = self._session_factory()
        try:
            positions = SqlAlchemyPositionRepository(db).list_all()
            tickers = sorted({p.ticker for p in positions if p.ticker != CASH_TICKER})

            quotes = self._provider.get_quotes(tickers) if tickers else {}
            refreshed_at = self._clock()

            cache_repo = SqlAlchemyPriceCacheRepository(db)
            for ticker, quote in quotes.items():
                cache_repo.upsert(
                    PriceCacheEntry(
                        ticker=ticker,
                        price=quote.last_price,
                        last_refreshed_at=refreshed_at,
                    )
                )

            SqlAlchemyRefreshStateRepository(db).set(
                RefreshMarker(name=PRICE_CACHE_MARKER, refreshed_at=refreshed_at)
            )
            logger.info(
                "Price cache refreshed: %d of %d tickers priced (force=%s)",
                len(quotes),
                len(tickers),
                force,
            )
        finally:
            db.close()

    def last_refreshed_at(self) -> Optional[datetime]:
        """Read the persisted marker."""
        db = self._session_factory()
        try:
            marker = SqlAlchemyRefreshStateRepository(db).get(PRICE_CACHE_MARKER)
            return marker.refreshed_at if marker else None
        finally:
            db.close()
