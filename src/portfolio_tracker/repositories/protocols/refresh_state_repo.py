"""Refresh marker repository protocol."""

from typing import Protocol, Optional

from portfolio_tracker.domain.models import RefreshMarker


class RefreshStateRepository(Protocol):
    """Interface for the persisted "last refreshed" marker."""

    def get(self, name: str) -> Optional[RefreshMarker]:
        """Get a marker by name."""
        ...

    def set(self, marker: RefreshMarker) -> RefreshMarker:
        """Insert or update a marker."""
        ...
