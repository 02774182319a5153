"""Market data provider protocol."""

from typing import Protocol

from portfolio_tracker.domain.views import Quote


class MarketDataProvider(Protocol):
    """
    Protocol for market price providers.

    Implementations fetch the latest trade price for each ticker.
    """

    def get_quotes(self, tickers: list[str]) -> dict[str, Quote]:
        """
        Fetch quotes for multiple tickers.

        Returns dict mapping ticker -> Quote. Tickers the provider does not
        know are omitted from the result.
        """
        ...
