"""Portfolio endpoints: holdings, account groups and price refresh."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from portfolio_tracker.api.deps import get_portfolio_service
from portfolio_tracker.api.schemas import (
    AccountGroupResponse,
    AccountsResponse,
    EnrichedPositionResponse,
    HoldingResponse,
    PortfolioResponse,
    PositionResponse,
    RefreshResponse,
    TotalsResponse,
)
from portfolio_tracker.domain.models import HoldingSortKey
from portfolio_tracker.services import PortfolioService

router = APIRouter(prefix="/portfolio", tags=["portfolio"])


@router.get("", response_model=PortfolioResponse)
def get_portfolio(
    force: bool = Query(False, description="Refresh prices even inside the staleness window"),
    search: Optional[str] = Query(None, description="Case-insensitive ticker filter"),
    sort_by: HoldingSortKey = Query(HoldingSortKey.TICKER),
    descending: Optional[bool] = Query(
        None,
        description="Defaults to A-Z for ticker, largest first for market_value and pnl",
    ),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """
    Return consolidated holdings and totals.

    Prices are refreshed first when they are older than the staleness
    window (or always, with ``force``). If the refresh fails the response
    is still served from last-known prices with ``is_stale`` set.
    """
    view = service.get_portfolio(
        force=force,
        search=search,
        sort_by=sort_by,
        descending=descending,
    )
    return PortfolioResponse(
        holdings=[HoldingResponse.model_validate(h) for h in view.holdings],
        totals=TotalsResponse.model_validate(view.totals),
        last_refreshed_at=view.last_refreshed_at,
        refresh_outcome=view.refresh_outcome,
        is_stale=view.is_stale,
        refresh_error=view.refresh_error,
    )


@router.get("/accounts", response_model=AccountsResponse)
def get_accounts(
    force: bool = Query(False),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Return every account with its valued lots."""
    view = service.get_portfolio(force=force)
    accounts = [
        AccountGroupResponse(
            account=group.account,
            positions=[
                EnrichedPositionResponse(
                    position=PositionResponse.model_validate(p.record),
                    current_price=p.current_price,
                    current_value=p.current_value,
                    cost_value=p.cost_value,
                    pnl=p.pnl,
                    price_known=p.price_known,
                )
                for p in group.positions
            ],
            total_value=group.total_value,
            total_cost=group.total_cost,
            pnl=group.pnl,
            pnl_percentage=group.pnl_percentage,
        )
        for group in view.accounts.values()
    ]
    return AccountsResponse(
        accounts=accounts,
        last_refreshed_at=view.last_refreshed_at,
        refresh_outcome=view.refresh_outcome,
        is_stale=view.is_stale,
        refresh_error=view.refresh_error,
    )


@router.post("/refresh", response_model=RefreshResponse)
def refresh_prices(service: PortfolioService = Depends(get_portfolio_service)):
    """Force a price refresh and wait for it to finish."""
    result = service.refresh_prices()
    return RefreshResponse(outcome=result.outcome, last_refreshed_at=result.last_refreshed_at)
