"""Price cache models written by the external refresh job."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass
class PriceCacheEntry:
    """
    Last known market price for a ticker.

    IMPORTANT: Never edited by the engine; only the refresh job writes it.
    """

    ticker: str
    price: Decimal = field(default_factory=lambda: Decimal("0"))
    last_refreshed_at: Optional[datetime] = field(default=None)


@dataclass
class RefreshMarker:
    """Persisted "last refreshed" marker the refresh job leaves behind."""

    name: str
    refreshed_at: Optional[datetime] = field(default=None)
