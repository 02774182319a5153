"""Domain layer - pure business models with no external dependencies."""

from portfolio_tracker.domain.models import (
    PositionRecord,
    PositionType,
    PriceCacheEntry,
    RefreshMarker,
    RefreshPhase,
    RefreshOutcome,
    HoldingSortKey,
    ZeroQuantityPolicy,
    CASH_TICKER,
)

__all__ = [
    "PositionRecord",
    "PositionType",
    "PriceCacheEntry",
    "RefreshMarker",
    "RefreshPhase",
    "RefreshOutcome",
    "HoldingSortKey",
    "ZeroQuantityPolicy",
    "CASH_TICKER",
]
