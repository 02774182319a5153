"""Application-level exceptions."""

from typing import Optional


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        row: Optional[int] = None,
    ):
        self.field = field
        self.row = row
        if row is not None:
            message = f"Row {row}: {message}"
        super().__init__(message, code="VALIDATION_ERROR")


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: object):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}", code="NOT_FOUND")


class ConsolidationError(AppError):
    """Raised when merging duplicate lots would divide by a zero quantity."""

    def __init__(self, ticker: str, account: str):
        self.ticker = ticker
        self.account = account
        super().__init__(
            f"Cannot consolidate {ticker} in '{account}': total quantity is zero",
            code="CONSOLIDATION_ERROR",
        )


class RefreshError(AppError):
    """Raised when the price refresh job fails."""

    def __init__(self, message: str, code: str = "REFRESH_ERROR"):
        super().__init__(message, code=code)


class RefreshTimeout(RefreshError):
    """Raised when the price refresh job does not finish within its deadline."""

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Price refresh did not complete within {timeout_seconds:g} seconds",
            code="REFRESH_TIMEOUT",
        )


class RefreshCancelled(RefreshError):
    """Raised when a caller cancels its wait on a price refresh."""

    def __init__(self):
        super().__init__("Price refresh was cancelled", code="REFRESH_CANCELLED")
