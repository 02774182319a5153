"""Repository protocol definitions (interfaces)."""

from portfolio_tracker.repositories.protocols.position_repo import PositionRepository
from portfolio_tracker.repositories.protocols.cache_repo import PriceCacheRepository
from portfolio_tracker.repositories.protocols.refresh_state_repo import RefreshStateRepository

__all__ = [
    "PositionRepository",
    "PriceCacheRepository",
    "RefreshStateRepository",
]
