"""Consolidation engine for merging duplicate lots on the single-add path."""

import logging
from decimal import Decimal
from typing import Optional

from portfolio_tracker.core.exceptions import ConsolidationError
from portfolio_tracker.core.locks import KeyedLocks
from portfolio_tracker.core.timezone import Clock, now_eastern
from portfolio_tracker.domain.models import PositionRecord, ZeroQuantityPolicy
from portfolio_tracker.domain.views import ConsolidationResult
from portfolio_tracker.repositories.protocols import PositionRepository

logger = logging.getLogger(__name__)


class ConsolidationEngine:
    """
    Collapses every lot of a (ticker, account) pair into one record.

    The record with the lowest id survives and takes the summed quantity and
    the quantity-weighted average cost basis; the others are deleted.
    Running it on an already consolidated pair changes nothing.

    Bulk imports never go through here: imported rows are kept as separate
    lots and only aggregated at read time.
    """

    def __init__(
        self,
        position_repo: PositionRepository,
        locks: KeyedLocks,
        clock: Clock = now_eastern,
    ):
        self._position_repo = position_repo
        self._locks = locks
        self._clock = clock

    @property
    def locks(self) -> KeyedLocks:
        """Per-(ticker, account) locks; hold across the read and write of a merge."""
        return self._locks

    def consolidate(
        self,
        ticker: str,
        account: str,
        zero_quantity_policy: ZeroQuantityPolicy = ZeroQuantityPolicy.RAISE,
    ) -> ConsolidationResult:
        """
        Merge all stored lots of ``(ticker, account)`` into the oldest one.

        Raises ConsolidationError when the lots sum to zero quantity, unless
        the caller chose ZeroQuantityPolicy.DELETE, in which case every lot
        of the pair is removed.
        """
        stored = self._position_repo.query(ticker=ticker, account=account)
        return self._merge(ticker, account, stored, None, zero_quantity_policy)

    def add(
        self,
        record: PositionRecord,
        zero_quantity_policy: ZeroQuantityPolicy = ZeroQuantityPolicy.RAISE,
    ) -> ConsolidationResult:
        """
        Fold a new, unsaved record into the stored lots of its key.

        The merge is computed before anything is written: a rejected merge
        leaves the ledger exactly as it was, and a record that merges into
        an existing lot is never inserted on its own.
        """
        stored = self._position_repo.query(ticker=record.ticker, account=record.account)
        return self._merge(record.ticker, record.account, stored, record, zero_quantity_policy)

    def _merge(
        self,
        ticker: str,
        account: str,
        stored: list[PositionRecord],
        pending: Optional[PositionRecord],
        zero_quantity_policy: ZeroQuantityPolicy,
    ) -> ConsolidationResult:
        result = ConsolidationResult(ticker=ticker, account=account)
        lots = stored + ([pending] if pending is not None else [])

        if len(lots) <= 1:
            if pending is not None:
                result.survivor = self._position_repo.create(pending)
            else:
                result.survivor = stored[0] if stored else None
            return result

        total_quantity = sum((m.quantity for m in lots), Decimal("0"))
        if total_quantity == Decimal("0"):
            if zero_quantity_policy != ZeroQuantityPolicy.DELETE:
                raise ConsolidationError(ticker, account)
            removed_ids = [m.id for m in stored]
            self._position_repo.delete_many(removed_ids)
            logger.info(
                "Deleted %d zero-quantity lots of %s in '%s'",
                len(removed_ids),
                ticker,
                account,
            )
            result.removed_ids = removed_ids
            return result

        total_cost = sum((m.quantity * m.cost_basis for m in lots), Decimal("0"))
        # stored is non-empty here: at most one lot is pending
        survivor = min(stored, key=lambda m: m.id)
        absorbed = [m for m in lots if m is not survivor]

        survivor.quantity = total_quantity
        survivor.cost_basis = total_cost / total_quantity
        if survivor.position_type is None:
            survivor.position_type = next(
                (m.position_type for m in absorbed if m.position_type is not None),
                None,
            )
        survivor.updated_at = self._clock()

        result.removed_ids = [m.id for m in absorbed if m.id is not None]
        result.survivor = self._position_repo.merge(survivor, result.removed_ids)

        logger.info(
            "Consolidated %d lots of %s in '%s' into id=%s (qty=%s, cost=%s)",
            len(lots),
            ticker,
            account,
            survivor.id,
            total_quantity,
            survivor.cost_basis,
        )
        return result
