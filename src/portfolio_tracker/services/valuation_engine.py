"""Valuation engine: holdings, account groups and totals from ledger + prices."""

from collections import defaultdict
from decimal import Decimal
from typing import Mapping, Optional

from portfolio_tracker.domain.models import (
    CASH_TICKER,
    HoldingSortKey,
    PositionRecord,
    PositionType,
    PriceCacheEntry,
)
from portfolio_tracker.domain.views import (
    AccountGroup,
    ConsolidatedHolding,
    EnrichedPosition,
    PortfolioTotals,
)

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")


def _percent(part: Decimal, whole: Decimal) -> Decimal:
    """part / whole * 100, or 0 when whole is not positive."""
    if whole > ZERO:
        return part / whole * HUNDRED
    return ZERO


class ValuationEngine:
    """
    Derives display aggregates from a ledger snapshot and a price snapshot.

    Stateless and side-effect free: every method is a pure function of its
    arguments, so it can be called repeatedly and from any thread.

    Pricing rules:
    - CASH is always worth exactly 1 per unit, whatever the cache says
    - a ticker missing from the cache is priced at 0 and flagged
      ``price_known=False`` rather than aborting the valuation
    """

    def resolve_price(
        self,
        ticker: str,
        prices: Mapping[str, PriceCacheEntry],
    ) -> tuple[Decimal, bool]:
        """Return (price, price_known) for a ticker."""
        if ticker == CASH_TICKER:
            return ONE, True
        entry = prices.get(ticker)
        if entry is None:
            return ZERO, False
        return entry.price, True

    def market_value(self, ticker: str, quantity: Decimal, price: Decimal) -> Decimal:
        """Quantity times price; for CASH the value is the quantity itself."""
        if ticker == CASH_TICKER:
            return quantity
        return quantity * price

    def consolidate_holdings(
        self,
        records: list[PositionRecord],
        prices: Mapping[str, PriceCacheEntry],
        include_inactive: bool = False,
    ) -> list[ConsolidatedHolding]:
        """
        Roll lots up per ticker across all accounts.

        ``portfolio_percent`` uses the market value of every ticker as its
        denominator, computed once per call. Tickers with a total quantity of
        zero or less are dropped unless ``include_inactive`` is set.
        Result is sorted by ticker.
        """
        by_ticker: dict[str, list[PositionRecord]] = defaultdict(list)
        for record in records:
            by_ticker[record.ticker].append(record)

        holdings: list[ConsolidatedHolding] = []
        for ticker in sorted(by_ticker):
            lots = by_ticker[ticker]
            total_quantity = sum((lot.quantity for lot in lots), ZERO)
            total_cost = sum((lot.cost_value for lot in lots), ZERO)
            price, price_known = self.resolve_price(ticker, prices)
            value = self.market_value(ticker, total_quantity, price)
            pnl = value - total_cost

            holdings.append(
                ConsolidatedHolding(
                    ticker=ticker,
                    total_quantity=total_quantity,
                    total_cost_value=total_cost,
                    current_price=price,
                    market_value=value,
                    pnl_dollar=pnl,
                    pnl_percent=_percent(pnl, total_cost),
                    average_cost_basis=(
                        total_cost / total_quantity if total_quantity > ZERO else ZERO
                    ),
                    position_type=self._holding_type(ticker, lots),
                    price_known=price_known,
                    accounts=sorted({lot.account for lot in lots}),
                )
            )

        portfolio_value = sum((h.market_value for h in holdings), ZERO)
        for holding in holdings:
            holding.portfolio_percent = _percent(holding.market_value, portfolio_value)

        if include_inactive:
            return holdings
        return [h for h in holdings if h.is_active]

    def group_by_account(
        self,
        records: list[PositionRecord],
        prices: Mapping[str, PriceCacheEntry],
    ) -> dict[str, AccountGroup]:
        """
        Roll lots up per account, keeping each lot with its own valuation.

        Accounts are returned in name order; lots keep ledger (id) order.
        """
        groups: dict[str, AccountGroup] = {}
        for record in sorted(records, key=lambda r: (r.account, r.id or 0)):
            group = groups.get(record.account)
            if group is None:
                group = groups[record.account] = AccountGroup(account=record.account)

            price, price_known = self.resolve_price(record.ticker, prices)
            current_value = self.market_value(record.ticker, record.quantity, price)
            cost_value = record.cost_value
            group.positions.append(
                EnrichedPosition(
                    record=record,
                    current_price=price,
                    current_value=current_value,
                    cost_value=cost_value,
                    pnl=current_value - cost_value,
                    price_known=price_known,
                )
            )
            group.total_value += current_value
            group.total_cost += cost_value

        for group in groups.values():
            group.pnl = group.total_value - group.total_cost
            group.pnl_percentage = _percent(group.pnl, group.total_cost)

        return groups

    def compute_totals(self, holdings: list[ConsolidatedHolding]) -> PortfolioTotals:
        """Portfolio-wide value, cost, P&L and the cash / stock / etf split."""
        totals = PortfolioTotals()
        for holding in holdings:
            totals.total_value += holding.market_value
            totals.total_cost += holding.total_cost_value
            if holding.position_type == PositionType.CASH:
                totals.cash_value += holding.market_value
            elif holding.position_type == PositionType.STOCK:
                totals.stock_value += holding.market_value
            elif holding.position_type == PositionType.ETF:
                totals.etf_value += holding.market_value

        totals.total_pnl = totals.total_value - totals.total_cost
        totals.total_pnl_percent = _percent(totals.total_pnl, totals.total_cost)
        totals.cash_percent = _percent(totals.cash_value, totals.total_value)
        totals.stock_percent = _percent(totals.stock_value, totals.total_value)
        totals.etf_percent = _percent(totals.etf_value, totals.total_value)
        totals.unique_tickers = len({h.ticker for h in holdings if h.ticker != CASH_TICKER})
        return totals

    @staticmethod
    def filter_holdings(
        holdings: list[ConsolidatedHolding],
        search: Optional[str],
    ) -> list[ConsolidatedHolding]:
        """Case-insensitive ticker substring filter; blank search keeps all."""
        term = (search or "").strip().lower()
        if not term:
            return list(holdings)
        return [h for h in holdings if term in h.ticker.lower()]

    @staticmethod
    def sort_holdings(
        holdings: list[ConsolidatedHolding],
        sort_key: HoldingSortKey = HoldingSortKey.TICKER,
        descending: Optional[bool] = None,
    ) -> list[ConsolidatedHolding]:
        """
        Sort holdings for display.

        Ticker sorts A-Z by default; value and P&L sort largest first by
        default. Equal values and equal P&L keep alphabetical ticker order.
        """
        by_ticker = sorted(holdings, key=lambda h: h.ticker)
        if sort_key == HoldingSortKey.TICKER:
            return list(reversed(by_ticker)) if descending else by_ticker

        reverse = True if descending is None else descending
        if sort_key == HoldingSortKey.MARKET_VALUE:
            return sorted(by_ticker, key=lambda h: h.market_value, reverse=reverse)
        return sorted(by_ticker, key=lambda h: h.pnl_dollar, reverse=reverse)

    @staticmethod
    def _holding_type(ticker: str, lots: list[PositionRecord]) -> Optional[PositionType]:
        """CASH is always cash; otherwise the first lot that names a type wins."""
        if ticker == CASH_TICKER:
            return PositionType.CASH
        for lot in lots:
            if lot.position_type is not None:
                return lot.position_type
        return None
