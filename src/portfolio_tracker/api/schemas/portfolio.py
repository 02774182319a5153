"""Pydantic schemas for portfolio endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from portfolio_tracker.domain.models.enums import PositionType, RefreshOutcome
from portfolio_tracker.api.schemas.position import PositionResponse


class HoldingResponse(BaseModel):
    """A ticker rolled up across all accounts."""

    model_config = {"from_attributes": True}

    ticker: str
    total_quantity: Decimal
    total_cost_value: Decimal
    average_cost_basis: Decimal
    current_price: Decimal
    market_value: Decimal
    pnl_dollar: Decimal
    pnl_percent: Decimal
    portfolio_percent: Decimal
    position_type: Optional[PositionType] = None
    price_known: bool
    accounts: list[str]


class TotalsResponse(BaseModel):
    """Portfolio-wide totals and allocation by instrument type."""

    model_config = {"from_attributes": True}

    total_value: Decimal
    total_cost: Decimal
    total_pnl: Decimal
    total_pnl_percent: Decimal
    cash_value: Decimal
    cash_percent: Decimal
    stock_value: Decimal
    stock_percent: Decimal
    etf_value: Decimal
    etf_percent: Decimal
    unique_tickers: int


class FreshnessResponse(BaseModel):
    """How fresh the prices behind a response are."""

    last_refreshed_at: Optional[datetime] = None
    refresh_outcome: Optional[RefreshOutcome] = None
    is_stale: bool = False
    refresh_error: Optional[str] = None


class PortfolioResponse(FreshnessResponse):
    """Response schema for GET /portfolio."""

    holdings: list[HoldingResponse]
    totals: TotalsResponse


class EnrichedPositionResponse(BaseModel):
    """A ledger record with its valuation."""

    position: PositionResponse
    current_price: Decimal
    current_value: Decimal
    cost_value: Decimal
    pnl: Decimal
    price_known: bool


class AccountGroupResponse(BaseModel):
    """One account with its lots and totals."""

    account: str
    positions: list[EnrichedPositionResponse]
    total_value: Decimal
    total_cost: Decimal
    pnl: Decimal
    pnl_percentage: Decimal


class AccountsResponse(FreshnessResponse):
    """Response schema for GET /portfolio/accounts."""

    accounts: list[AccountGroupResponse]


class LedgerChangeResponse(FreshnessResponse):
    """Response schema for any ledger mutation."""

    positions: list[PositionResponse]
    removed_ids: list[int]
    totals: TotalsResponse


class RefreshResponse(BaseModel):
    """Response schema for POST /portfolio/refresh."""

    outcome: RefreshOutcome
    last_refreshed_at: Optional[datetime] = None
