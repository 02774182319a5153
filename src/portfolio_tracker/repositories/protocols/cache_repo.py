"""Price cache repository protocol."""

from typing import Protocol, Optional

from portfolio_tracker.domain.models import PriceCacheEntry


class PriceCacheRepository(Protocol):
    """
    Interface for price cache data access.

    Read methods serve the valuation engine; ``upsert`` exists only for the
    refresh job that owns the cache.
    """

    def get(self, ticker: str) -> Optional[PriceCacheEntry]:
        """Get the cached price for a ticker."""
        ...

    def get_many(self, tickers: list[str]) -> dict[str, PriceCacheEntry]:
        """Get cached prices for several tickers; missing tickers are omitted."""
        ...

    def list_all(self) -> list[PriceCacheEntry]:
        """List every cached price."""
        ...

    def upsert(self, entry: PriceCacheEntry) -> PriceCacheEntry:
        """Insert or update a cache entry."""
        ...
