"""Core utilities and shared functionality."""

from portfolio_tracker.core.timezone import (
    now_eastern,
    to_eastern,
    EASTERN_TZ,
    Clock,
)
from portfolio_tracker.core.exceptions import (
    AppError,
    ValidationError,
    NotFoundError,
    ConsolidationError,
    RefreshError,
    RefreshTimeout,
    RefreshCancelled,
)
from portfolio_tracker.core.locks import KeyedLocks

__all__ = [
    "now_eastern",
    "to_eastern",
    "EASTERN_TZ",
    "Clock",
    "AppError",
    "ValidationError",
    "NotFoundError",
    "ConsolidationError",
    "RefreshError",
    "RefreshTimeout",
    "RefreshCancelled",
    "KeyedLocks",
]
