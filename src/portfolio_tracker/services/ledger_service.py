"""Ledger service for position record management."""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from portfolio_tracker.core.timezone import Clock, now_eastern
from portfolio_tracker.core.exceptions import ValidationError, NotFoundError
from portfolio_tracker.domain.models import CASH_TICKER, PositionRecord, PositionType
from portfolio_tracker.repositories.protocols import PositionRepository

ZERO = Decimal("0")


@dataclass
class PositionCreate:
    """
    Input data for a new ledger record.

    Numeric fields may arrive as strings or floats from an import; they are
    validated and converted to Decimal before anything is stored.
    """

    ticker: Any
    account: Any
    quantity: Any
    cost_basis: Any
    position_type: Optional[Any] = None


@dataclass
class PositionUpdate:
    """Partial update data for editing a record."""

    quantity: Optional[Any] = None
    cost_basis: Optional[Any] = None
    position_type: Optional[Any] = None


class LedgerService:
    """
    Service for the append-only ledger of position records.

    Validates and normalizes input; never merges anything. Merging of
    duplicate (ticker, account) lots belongs to the consolidation engine.
    """

    def __init__(
        self,
        position_repo: PositionRepository,
        clock: Clock = now_eastern,
    ):
        self._position_repo = position_repo
        self._clock = clock

    def prepare(self, data: PositionCreate, row: Optional[int] = None) -> PositionRecord:
        """
        Validate and normalize input into an unsaved record.

        ``row`` is the 1-based position in a batch, used in error messages.
        """
        ticker = self._require_text(data.ticker, "ticker", row).upper()
        account = self._require_text(data.account, "account", row)
        quantity = self._parse_decimal(data.quantity, "quantity", row)
        cost_basis = self._parse_decimal(data.cost_basis, "cost_basis", row)
        position_type = self._parse_type(data.position_type, row)

        self._validate_amounts(quantity, cost_basis, row)

        if position_type is None and ticker == CASH_TICKER:
            position_type = PositionType.CASH

        return PositionRecord(
            ticker=ticker,
            account=account,
            quantity=quantity,
            cost_basis=cost_basis,
            position_type=position_type,
            created_at=self._clock(),
        )

    def append(self, data: PositionCreate) -> PositionRecord:
        """Validate and store a single record."""
        record = self.prepare(data)
        return self._position_repo.create(record)

    def bulk_append(self, rows: list[PositionCreate]) -> list[PositionRecord]:
        """
        Validate every row, then store them all in one transaction.

        Fails on the first invalid row without storing anything. Rows for
        the same (ticker, account) stay separate lots.
        """
        if not rows:
            raise ValidationError("Import contains no rows")

        records = [self.prepare(data, row=index) for index, data in enumerate(rows, start=1)]
        return self._position_repo.create_many(records)

    def get(self, position_id: int) -> PositionRecord:
        """Get a record by ID."""
        record = self._position_repo.get_by_id(position_id)
        if not record:
            raise NotFoundError("Position", position_id)
        return record

    def update(self, position_id: int, patch: PositionUpdate) -> PositionRecord:
        """Apply a partial update and re-validate the resulting record."""
        record = self.get(position_id)

        if patch.quantity is not None:
            record.quantity = self._parse_decimal(patch.quantity, "quantity")
        if patch.cost_basis is not None:
            record.cost_basis = self._parse_decimal(patch.cost_basis, "cost_basis")
        if patch.position_type is not None:
            record.position_type = self._parse_type(patch.position_type)

        self._validate_amounts(record.quantity, record.cost_basis)
        record.updated_at = self._clock()
        return self._position_repo.update(record)

    def remove(self, position_id: int) -> PositionRecord:
        """Delete a record; return what was deleted."""
        record = self.get(position_id)
        self._position_repo.delete(position_id)
        return record

    def clear(self) -> list[int]:
        """Delete the whole ledger; return the ids that were removed."""
        removed_ids = [r.id for r in self._position_repo.list_all()]
        self._position_repo.delete_all()
        return removed_ids

    def list_all(self) -> list[PositionRecord]:
        """List every record."""
        return self._position_repo.list_all()

    def find_by_key(self, ticker: str, account: str) -> list[PositionRecord]:
        """List the lots of one (ticker, account) pair, oldest first."""
        return self._position_repo.query(
            ticker=ticker.strip().upper(),
            account=account.strip(),
        )

    def query(
        self,
        ticker: Optional[str] = None,
        account: Optional[str] = None,
    ) -> list[PositionRecord]:
        """Query records with optional filters."""
        return self._position_repo.query(
            ticker=ticker.strip().upper() if ticker else None,
            account=account.strip() if account else None,
        )

    @staticmethod
    def _require_text(value: Any, field: str, row: Optional[int] = None) -> str:
        """Return the trimmed string or fail if it is empty."""
        text = value.strip() if isinstance(value, str) else ""
        if not text:
            raise ValidationError(f"{field} is required", field=field, row=row)
        return text

    @staticmethod
    def _parse_decimal(value: Any, field: str, row: Optional[int] = None) -> Decimal:
        """Parse a numeric input, rejecting booleans, blanks and non-finite values."""
        if value is None or isinstance(value, bool):
            raise ValidationError(f"{field} must be numeric", field=field, row=row)
        if isinstance(value, str):
            value = value.strip()
        try:
            number = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{field} must be numeric", field=field, row=row)
        if not number.is_finite():
            raise ValidationError(f"{field} must be numeric", field=field, row=row)
        return number

    @staticmethod
    def _parse_type(value: Any, row: Optional[int] = None) -> Optional[PositionType]:
        """Parse an optional instrument type (stock, etf or cash)."""
        if value is None or value == "":
            return None
        if isinstance(value, PositionType):
            return value
        try:
            return PositionType(str(value).strip().lower())
        except ValueError:
            raise ValidationError(
                f"position_type must be one of stock, etf, cash (got {value!r})",
                field="position_type",
                row=row,
            )

    @staticmethod
    def _validate_amounts(
        quantity: Decimal,
        cost_basis: Decimal,
        row: Optional[int] = None,
    ) -> None:
        """Quantity may not be negative; a held quantity needs a positive cost."""
        if quantity < ZERO:
            raise ValidationError("quantity must be >= 0", field="quantity", row=row)
        if quantity > ZERO and cost_basis <= ZERO:
            raise ValidationError(
                "cost_basis must be > 0 when quantity > 0",
                field="cost_basis",
                row=row,
            )
        if cost_basis < ZERO:
            raise ValidationError("cost_basis must be >= 0", field="cost_basis", row=row)
