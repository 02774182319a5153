"""Pydantic schemas for API request/response."""

from portfolio_tracker.api.schemas.position import (
    PositionCreateRequest,
    PositionUpdateRequest,
    PositionImportRequest,
    PositionResponse,
    PositionListResponse,
)
from portfolio_tracker.api.schemas.portfolio import (
    HoldingResponse,
    TotalsResponse,
    FreshnessResponse,
    PortfolioResponse,
    EnrichedPositionResponse,
    AccountGroupResponse,
    AccountsResponse,
    LedgerChangeResponse,
    RefreshResponse,
)

__all__ = [
    "PositionCreateRequest",
    "PositionUpdateRequest",
    "PositionImportRequest",
    "PositionResponse",
    "PositionListResponse",
    "HoldingResponse",
    "TotalsResponse",
    "FreshnessResponse",
    "PortfolioResponse",
    "EnrichedPositionResponse",
    "AccountGroupResponse",
    "AccountsResponse",
    "LedgerChangeResponse",
    "RefreshResponse",
]
