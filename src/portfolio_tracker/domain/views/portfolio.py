"""View models for valuation and portfolio outputs."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from portfolio_tracker.domain.models import PositionRecord, PositionType, RefreshOutcome

ZERO = Decimal("0")


@dataclass
class ConsolidatedHolding:
    """
    Ticker-level rollup of every lot across all accounts.

    Derived on every read; never stored. ``price_known`` is False when the
    price cache had no entry and ``current_price`` fell back to 0.
    """

    ticker: str
    total_quantity: Decimal
    total_cost_value: Decimal
    current_price: Decimal
    market_value: Decimal
    pnl_dollar: Decimal
    pnl_percent: Decimal
    portfolio_percent: Decimal = ZERO
    average_cost_basis: Decimal = ZERO
    position_type: Optional[PositionType] = None
    price_known: bool = True
    accounts: list[str] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        """Only positive quantities count as held."""
        return self.total_quantity > ZERO


@dataclass
class EnrichedPosition:
    """A single ledger record with its valuation attached."""

    record: PositionRecord
    current_price: Decimal
    current_value: Decimal
    cost_value: Decimal
    pnl: Decimal
    price_known: bool = True


@dataclass
class AccountGroup:
    """Account-level rollup keeping every lot for drill-down."""

    account: str
    positions: list[EnrichedPosition] = field(default_factory=list)
    total_value: Decimal = ZERO
    total_cost: Decimal = ZERO
    pnl: Decimal = ZERO
    pnl_percentage: Decimal = ZERO


@dataclass
class PortfolioTotals:
    """Portfolio-wide figures and the cash / stock / etf split."""

    total_value: Decimal = ZERO
    total_cost: Decimal = ZERO
    total_pnl: Decimal = ZERO
    total_pnl_percent: Decimal = ZERO
    cash_value: Decimal = ZERO
    cash_percent: Decimal = ZERO
    stock_value: Decimal = ZERO
    stock_percent: Decimal = ZERO
    etf_value: Decimal = ZERO
    etf_percent: Decimal = ZERO
    unique_tickers: int = 0


@dataclass
class RefreshResult:
    """What an ensure-fresh call did."""

    outcome: RefreshOutcome
    last_refreshed_at: Optional[datetime] = None


@dataclass
class PortfolioView:
    """
    Display-ready aggregates returned after a freshness check.

    ``is_stale`` is set when the refresh failed and the numbers were
    computed from last-known prices; ``refresh_error`` carries the reason.
    """

    holdings: list[ConsolidatedHolding] = field(default_factory=list)
    accounts: dict[str, AccountGroup] = field(default_factory=dict)
    totals: PortfolioTotals = field(default_factory=PortfolioTotals)
    last_refreshed_at: Optional[datetime] = None
    refresh_outcome: Optional[RefreshOutcome] = None
    is_stale: bool = False
    refresh_error: Optional[str] = None


@dataclass
class ConsolidationResult:
    """Outcome of merging the lots of one (ticker, account) pair."""

    ticker: str
    account: str
    survivor: Optional[PositionRecord] = None
    removed_ids: list[int] = field(default_factory=list)

    @property
    def merged(self) -> bool:
        """True when duplicates were collapsed into the survivor."""
        return bool(self.removed_ids)


@dataclass
class LedgerChange:
    """
    Result of a ledger mutation followed by a forced refresh.

    ``positions`` holds the records that now exist because of the change
    (the merged survivor, the imported lots, the edited record);
    ``removed_ids`` lists the records that no longer exist.
    """

    portfolio: PortfolioView
    positions: list[PositionRecord] = field(default_factory=list)
    removed_ids: list[int] = field(default_factory=list)


@dataclass
class Quote:
    """Market quote returned by a price provider."""

    ticker: str
    last_price: Decimal
    as_of: datetime
