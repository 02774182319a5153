"""Market data providers and the price refresh job."""

from portfolio_tracker.providers.market_data_provider import MarketDataProvider
from portfolio_tracker.providers.stub_provider import StubMarketDataProvider
from portfolio_tracker.providers.refresh_job import (
    RefreshJob,
    PriceCacheRefreshJob,
    PRICE_CACHE_MARKER,
)

__all__ = [
    "MarketDataProvider",
    "StubMarketDataProvider",
    "RefreshJob",
    "PriceCacheRefreshJob",
    "PRICE_CACHE_MARKER",
]
