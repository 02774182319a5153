"""Domain models package."""

from portfolio_tracker.domain.models.enums import (
    PositionType,
    RefreshPhase,
    RefreshOutcome,
    HoldingSortKey,
    ZeroQuantityPolicy,
)
from portfolio_tracker.domain.models.position import PositionRecord, CASH_TICKER
from portfolio_tracker.domain.models.cache import PriceCacheEntry, RefreshMarker

__all__ = [
    "PositionType",
    "RefreshPhase",
    "RefreshOutcome",
    "HoldingSortKey",
    "ZeroQuantityPolicy",
    "PositionRecord",
    "CASH_TICKER",
    "PriceCacheEntry",
    "RefreshMarker",
]
