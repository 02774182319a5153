"""Service layer - business logic orchestration."""

from portfolio_tracker.services.ledger_service import LedgerService, PositionCreate, PositionUpdate
from portfolio_tracker.services.consolidation_engine import ConsolidationEngine
from portfolio_tracker.services.valuation_engine import ValuationEngine
from portfolio_tracker.services.price_cache import PriceCache
from portfolio_tracker.services.refresh_coordinator import RefreshCoordinator
from portfolio_tracker.services.portfolio_service import PortfolioService

__all__ = [
    "LedgerService",
    "PositionCreate",
    "PositionUpdate",
    "ConsolidationEngine",
    "ValuationEngine",
    "PriceCache",
    "RefreshCoordinator",
    "PortfolioService",
]
