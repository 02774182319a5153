"""Pydantic schemas for ledger endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from portfolio_tracker.domain.models.enums import PositionType


class PositionCreateRequest(BaseModel):
    """Request schema for adding a position (also one row of an import)."""

    ticker: str = Field(..., max_length=20, description="Ticker symbol; CASH for cash")
    account: str = Field(..., max_length=255, description="Account name")
    quantity: Decimal = Field(..., description="Units held")
    cost_basis: Decimal = Field(..., description="Cost per unit at acquisition")
    position_type: Optional[PositionType] = Field(
        default=None,
        description="stock, etf or cash; inferred for CASH when omitted",
    )


class PositionUpdateRequest(BaseModel):
    """Request schema for editing a position (partial update)."""

    quantity: Optional[Decimal] = None
    cost_basis: Optional[Decimal] = None
    position_type: Optional[PositionType] = None


class PositionImportRequest(BaseModel):
    """Request schema for a bulk import of already-normalized rows."""

    positions: list[PositionCreateRequest]


class PositionResponse(BaseModel):
    """Response schema for a single ledger record."""

    model_config = {"from_attributes": True}

    id: int
    ticker: str
    account: str
    quantity: Decimal
    cost_basis: Decimal
    position_type: Optional[PositionType] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PositionListResponse(BaseModel):
    """Response schema for listing ledger records."""

    positions: list[PositionResponse]
    count: int
