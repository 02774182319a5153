"""Enumerations for domain models."""

from enum import Enum


class PositionType(str, Enum):
    """Instrument types a ledger record may carry."""

    STOCK = "stock"
    ETF = "etf"
    CASH = "cash"


class RefreshPhase(str, Enum):
    """Coordinator-wide refresh state; a skipped check is a per-call RefreshOutcome."""

    IDLE = "IDLE"
    CHECKING = "CHECKING"
    REFRESHING = "REFRESHING"


class RefreshOutcome(str, Enum):
    """Result of a single ensure-fresh call."""

    SKIPPED = "SKIPPED"
    REFRESHED = "REFRESHED"


class HoldingSortKey(str, Enum):
    """Sort orders available on consolidated holdings."""

    TICKER = "ticker"
    MARKET_VALUE = "market_value"
    PNL = "pnl"


class ZeroQuantityPolicy(str, Enum):
    """What consolidation does when merged lots sum to zero quantity."""

    RAISE = "RAISE"  # signal ConsolidationError and leave the lots untouched
    DELETE = "DELETE"  # remove every lot of the (ticker, account) pair
