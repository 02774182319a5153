"""Stub market data provider for offline/testing use."""

import random
from decimal import Decimal

from portfolio_tracker.core.timezone import now_eastern
from portfolio_tracker.domain.views import Quote


# Deterministic fake prices for common tickers
_STUB_PRICES: dict[str, Decimal] = {
    "AAPL": Decimal("185.50"),
    "GOOGL": Decimal("142.75"),
    "MSFT": Decimal("378.25"),
    "AMZN": Decimal("178.50"),
    "TSLA": Decimal("248.75"),
    "NVDA": Decimal("485.25"),
    "META": Decimal("505.50"),
    "SPY": Decimal("485.25"),
    "QQQ": Decimal("418.75"),
    "VTI": Decimal("252.30"),
}


class StubMarketDataProvider:
    """
    Stub provider with deterministic fake data for offline operation.

    Uses predefined prices for common tickers; generates seeded random
    prices for unknown tickers.
    """

    def __init__(self, seed: int = 42):
        self._rng = random.Random(seed)

    def get_quotes(self, tickers: list[str]) -> dict[str, Quote]:
        """Return stub quotes for requested tickers."""
        as_of = now_eastern()
        result: dict[str, Quote] = {}

        for ticker in tickers:
            upper_ticker = ticker.upper()
            if upper_ticker in _STUB_PRICES:
                last_price = _STUB_PRICES[upper_ticker]
            else:
                base_price = Decimal(str(50 + self._rng.random() * 200))
                last_price = base_price.quantize(Decimal("0.01"))

            result[upper_ticker] = Quote(
                ticker=upper_ticker,
                last_price=last_price,
                as_of=as_of,
            )

        return result
