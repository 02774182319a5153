"""Position record domain model (ledger entry)."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from portfolio_tracker.domain.models.enums import PositionType

CASH_TICKER = "CASH"


@dataclass
class PositionRecord:
    """
    One lot in the ledger: a quantity of a ticker acquired at a cost per unit.

    - ``id`` is assigned by the repository on insert and never changes
    - ``(ticker, account)`` is not unique; duplicates are merged only on the
      single-add path
    - ``CASH`` is a reserved ticker always priced at exactly 1
    """

    ticker: str
    account: str
    quantity: Decimal
    cost_basis: Decimal
    position_type: Optional[PositionType] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if isinstance(self.position_type, str):
            self.position_type = PositionType(self.position_type)

    @property
    def key(self) -> tuple[str, str]:
        """Return the (ticker, account) pair used for consolidation."""
        return (self.ticker, self.account)

    @property
    def is_cash(self) -> bool:
        """Return True if this record is the CASH sentinel."""
        return self.ticker == CASH_TICKER

    @property
    def cost_value(self) -> Decimal:
        """Total acquisition cost of this lot."""
        return self.quantity * self.cost_basis
