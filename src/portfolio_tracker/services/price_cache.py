"""Read-only access to the price cache."""

from decimal import Decimal
from typing import Optional

from portfolio_tracker.domain.models import CASH_TICKER, PriceCacheEntry
from portfolio_tracker.repositories.protocols import PriceCacheRepository


class PriceCache:
    """
    Read side of the price cache.

    The refresh job owns all writes; this class exposes no mutation.
    CASH is answered locally at a price of 1 and never looked up.
    """

    def __init__(self, cache_repo: PriceCacheRepository):
        self._cache_repo = cache_repo

    def get_price(self, ticker: str) -> Optional[PriceCacheEntry]:
        """Return the cached entry for ``ticker``, or None if it was never priced."""
        ticker = ticker.strip().upper()
        if ticker == CASH_TICKER:
            return PriceCacheEntry(ticker=CASH_TICKER, price=Decimal("1"))
        return self._cache_repo.get(ticker)

    def snapshot(self, tickers: list[str]) -> dict[str, PriceCacheEntry]:
        """Return cached entries for ``tickers`` in one read; CASH is skipped."""
        wanted = sorted({t for t in tickers if t != CASH_TICKER})
        return self._cache_repo.get_many(wanted)

    def list_all(self) -> list[PriceCacheEntry]:
        """Every cached entry."""
        return self._cache_repo.list_all()
