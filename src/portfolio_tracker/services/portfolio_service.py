"""Portfolio service: ledger mutations and reads, each behind a freshness check."""

import logging
from typing import Optional

from portfolio_tracker.core.exceptions import RefreshError
from portfolio_tracker.domain.models import (
    HoldingSortKey,
    PositionRecord,
    RefreshOutcome,
    ZeroQuantityPolicy,
)
from portfolio_tracker.domain.views import (
    AccountGroup,
    LedgerChange,
    PortfolioView,
    RefreshResult,
)
from portfolio_tracker.services.consolidation_engine import ConsolidationEngine
from portfolio_tracker.services.ledger_service import LedgerService, PositionCreate, PositionUpdate
from portfolio_tracker.services.price_cache import PriceCache
from portfolio_tracker.services.refresh_coordinator import RefreshCoordinator
from portfolio_tracker.services.valuation_engine import ValuationEngine

logger = logging.getLogger(__name__)


class PortfolioService:
    """
    Entry point for everything the presentation layer does.

    Every mutation is committed first, then a forced refresh runs to
    completion, then aggregates are read. Plain reads use a non-forced
    refresh that skips while prices are inside the staleness window.

    A failed refresh never hides the data: aggregates are computed from the
    last-known prices and the view is flagged ``is_stale`` with the reason.
    """

    def __init__(
        self,
        ledger: LedgerService,
        consolidation: ConsolidationEngine,
        valuation: ValuationEngine,
        price_cache: PriceCache,
        coordinator: RefreshCoordinator,
    ):
        self._ledger = ledger
        self._consolidation = consolidation
        self._valuation = valuation
        self._price_cache = price_cache
        self._coordinator = coordinator

    # Mutations

    def add_position(
        self,
        data: PositionCreate,
        zero_quantity_policy: ZeroQuantityPolicy = ZeroQuantityPolicy.RAISE,
    ) -> LedgerChange:
        """
        Add one lot and merge it with existing lots of the same key.

        The per-key lock is held across reading the existing lots and
        writing the merge, so two concurrent adds of the same
        (ticker, account) end as one record. A rejected merge stores nothing.
        """
        prepared = self._ledger.prepare(data)
        with self._consolidation.locks.hold(prepared.key):
            result = self._consolidation.add(
                prepared,
                zero_quantity_policy=zero_quantity_policy,
            )

        positions = [result.survivor] if result.survivor else []
        return LedgerChange(
            portfolio=self._refresh_and_read(force=True),
            positions=positions,
            removed_ids=result.removed_ids,
        )

    def import_positions(self, rows: list[PositionCreate]) -> LedgerChange:
        """Store every row as its own lot; nothing is merged."""
        records = self._ledger.bulk_append(rows)
        logger.info("Imported %d positions", len(records))
        return LedgerChange(
            portfolio=self._refresh_and_read(force=True),
            positions=records,
        )

    def update_position(self, position_id: int, patch: PositionUpdate) -> LedgerChange:
        """Edit one record in place."""
        record = self._ledger.update(position_id, patch)
        return LedgerChange(
            portfolio=self._refresh_and_read(force=True),
            positions=[record],
        )

    def remove_position(self, position_id: int) -> LedgerChange:
        """Delete one record."""
        record = self._ledger.remove(position_id)
        logger.info("Removed position id=%s (%s in '%s')", record.id, record.ticker, record.account)
        return LedgerChange(
            portfolio=self._refresh_and_read(force=True),
            removed_ids=[record.id],
        )

    def clear_all(self) -> LedgerChange:
        """Delete the whole ledger."""
        removed_ids = self._ledger.clear()
        logger.info("Cleared ledger (%d positions)", len(removed_ids))
        return LedgerChange(
            portfolio=self._refresh_and_read(force=True),
            removed_ids=removed_ids,
        )

    # Reads

    def list_positions(
        self,
        ticker: Optional[str] = None,
        account: Optional[str] = None,
    ) -> list[PositionRecord]:
        """Raw ledger records, including zero-quantity lots."""
        return self._ledger.query(ticker=ticker, account=account)

    def find_lots(self, ticker: str, account: str) -> list[PositionRecord]:
        return self._ledger.find_by_key(ticker, account)

    def get_portfolio(
        self,
        force: bool = False,
        search: Optional[str] = None,
        sort_by: HoldingSortKey = HoldingSortKey.TICKER,
        descending: Optional[bool] = None,
    ) -> PortfolioView:
        """
        Holdings, account groups and totals after a freshness check.

        ``search`` and ``sort_by`` only shape ``holdings``; totals always
        cover the whole portfolio.
        """
        view = self._refresh_and_read(force=force)
        holdings = self._valuation.filter_holdings(view.holdings, search)
        view.holdings = self._valuation.sort_holdings(holdings, sort_by, descending)
        return view

    def get_accounts(self, force: bool = False) -> dict[str, AccountGroup]:
        return self._refresh_and_read(force=force).accounts

    def refresh_prices(self) -> RefreshResult:
        """
        Run a forced refresh and wait for it.

        Unlike reads, failures propagate here: the caller asked for a
        refresh and nothing else.
        """
        return self._coordinator.ensure_fresh(force=True)

    def _refresh_and_read(self, force: bool) -> PortfolioView:
        outcome: Optional[RefreshOutcome] = None
        error: Optional[str] = None
        try:
            outcome = self._coordinator.ensure_fresh(force=force).outcome
        except RefreshError as exc:
            logger.warning("Serving last-known prices: %s", exc.message)
            error = exc.message

        view = self._read()
        view.refresh_outcome = outcome
        view.is_stale = error is not None
        view.refresh_error = error
        return view

    def _read(self) -> PortfolioView:
        """Value one ledger snapshot against one price snapshot."""
        records = self._ledger.list_all()
        prices = self._price_cache.snapshot([r.ticker for r in records])

        holdings = self._valuation.consolidate_holdings(records, prices)
        return PortfolioView(
            holdings=holdings,
            accounts=self._valuation.group_by_account(records, prices),
            totals=self._valuation.compute_totals(holdings),
            last_refreshed_at=self._coordinator.last_known_refresh_at,
        )
