"""Repository layer - data access abstractions and implementations."""

from portfolio_tracker.repositories.protocols import (
    PositionRepository,
    PriceCacheRepository,
    RefreshStateRepository,
)

__all__ = [
    "PositionRepository",
    "PriceCacheRepository",
    "RefreshStateRepository",
]
