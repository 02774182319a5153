"""API routers package."""

from portfolio_tracker.api.routers.positions import router as positions_router
from portfolio_tracker.api.routers.portfolio import router as portfolio_router

__all__ = [
    "positions_router",
    "portfolio_router",
]
