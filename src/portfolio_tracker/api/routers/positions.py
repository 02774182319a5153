"""Ledger endpoints: add, import, edit, delete and list position records."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from portfolio_tracker.api.deps import get_portfolio_service
from portfolio_tracker.api.schemas import (
    LedgerChangeResponse,
    PositionCreateRequest,
    PositionImportRequest,
    PositionListResponse,
    PositionResponse,
    PositionUpdateRequest,
    TotalsResponse,
)
from portfolio_tracker.domain.models import ZeroQuantityPolicy
from portfolio_tracker.domain.views import LedgerChange
from portfolio_tracker.services import PortfolioService, PositionCreate, PositionUpdate

router = APIRouter(prefix="/positions", tags=["positions"])


def _to_create(data: PositionCreateRequest) -> PositionCreate:
    return PositionCreate(
        ticker=data.ticker,
        account=data.account,
        quantity=data.quantity,
        cost_basis=data.cost_basis,
        position_type=data.position_type,
    )


def _change_response(change: LedgerChange) -> LedgerChangeResponse:
    view = change.portfolio
    return LedgerChangeResponse(
        positions=[PositionResponse.model_validate(p) for p in change.positions],
        removed_ids=change.removed_ids,
        totals=TotalsResponse.model_validate(view.totals),
        last_refreshed_at=view.last_refreshed_at,
        refresh_outcome=view.refresh_outcome,
        is_stale=view.is_stale,
        refresh_error=view.refresh_error,
    )


@router.get("", response_model=PositionListResponse)
def list_positions(
    ticker: Optional[str] = Query(None, description="Filter by ticker"),
    account: Optional[str] = Query(None, description="Filter by account name"),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """List raw ledger records, zero-quantity lots included."""
    records = service.list_positions(ticker=ticker, account=account)
    return PositionListResponse(
        positions=[PositionResponse.model_validate(r) for r in records],
        count=len(records),
    )


@router.post("", response_model=LedgerChangeResponse, status_code=201)
def add_position(
    data: PositionCreateRequest,
    delete_if_zero: bool = Query(
        False,
        description="Delete the lots instead of failing when they sum to zero quantity",
    ),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Add a position, merging it with existing lots of the same ticker and account."""
    policy = ZeroQuantityPolicy.DELETE if delete_if_zero else ZeroQuantityPolicy.RAISE
    change = service.add_position(_to_create(data), zero_quantity_policy=policy)
    return _change_response(change)


@router.post("/import", response_model=LedgerChangeResponse, status_code=201)
def import_positions(
    data: PositionImportRequest,
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Bulk-import positions; every row is kept as its own lot."""
    change = service.import_positions([_to_create(row) for row in data.positions])
    return _change_response(change)


@router.put("/{position_id}", response_model=LedgerChangeResponse)
def update_position(
    position_id: int,
    data: PositionUpdateRequest,
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Edit quantity, cost basis or type of one record."""
    patch = PositionUpdate(
        quantity=data.quantity,
        cost_basis=data.cost_basis,
        position_type=data.position_type,
    )
    return _change_response(service.update_position(position_id, patch))


@router.delete("/{position_id}", response_model=LedgerChangeResponse)
def delete_position(
    position_id: int,
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Delete one record."""
    return _change_response(service.remove_position(position_id))


@router.delete("", response_model=LedgerChangeResponse)
def clear_positions(service: PortfolioService = Depends(get_portfolio_service)):
    """Delete every record in the ledger."""
    return _change_response(service.clear_all())
