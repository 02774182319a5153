"""View models for service outputs."""

from portfolio_tracker.domain.views.portfolio import (
    ConsolidatedHolding,
    EnrichedPosition,
    AccountGroup,
    PortfolioTotals,
    RefreshResult,
    PortfolioView,
    ConsolidationResult,
    LedgerChange,
    Quote,
)

__all__ = [
    "ConsolidatedHolding",
    "EnrichedPosition",
    "AccountGroup",
    "PortfolioTotals",
    "RefreshResult",
    "PortfolioView",
    "ConsolidationResult",
    "LedgerChange",
    "Quote",
]
