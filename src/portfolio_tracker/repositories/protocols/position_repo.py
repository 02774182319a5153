"""Position (ledger) repository protocol."""

from typing import Protocol, Optional

from portfolio_tracker.domain.models import PositionRecord


class PositionRepository(Protocol):
    """Interface for ledger data access."""

    def create(self, record: PositionRecord) -> PositionRecord:
        """Persist a new record and return it with its assigned id."""
        ...

    def create_many(self, records: list[PositionRecord]) -> list[PositionRecord]:
        """Persist all records in one transaction (all-or-nothing)."""
        ...

    def get_by_id(self, position_id: int) -> Optional[PositionRecord]:
        """Retrieve a record by ID."""
        ...

    def update(self, record: PositionRecord) -> PositionRecord:
        """Update an existing record."""
        ...

    def merge(self, survivor: PositionRecord, removed_ids: list[int]) -> PositionRecord:
        """Save the merged survivor and delete the absorbed lots in one transaction."""
        ...

    def delete(self, position_id: int) -> None:
        """Delete a single record."""
        ...

    def delete_many(self, position_ids: list[int]) -> None:
        """Delete several records in one transaction."""
        ...

    def delete_all(self) -> int:
        """Delete every record; return how many were removed."""
        ...

    def list_all(self) -> list[PositionRecord]:
        """List all records ordered by id."""
        ...

    def query(
        self,
        ticker: Optional[str] = None,
        account: Optional[str] = None,
    ) -> list[PositionRecord]:
        """List records filtered by ticker and/or account, ordered by id."""
        ...
