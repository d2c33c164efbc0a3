"""Custom exception hierarchy for CoinAPI market data fetching."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..models.shared import Period


class CoinapiError(RuntimeError):
    """Base class for all domain-specific exceptions."""


class PeriodNotSupportedError(CoinapiError):
    """Raised when a period cannot be used as-is with the history endpoint."""

    def __init__(
        self,
        message: str,
        *,
        requested: timedelta | None = None,
        closest: Period | None = None,
    ) -> None:
        super().__init__(message)
        self.requested = requested
        self.closest = closest


class ApiTransientError(CoinapiError):
    """Represents temporary issues such as rate limiting or network failures."""


class ApiRequestError(CoinapiError):
    """Raised for non-retryable HTTP error responses."""

    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class ResponseFormatError(CoinapiError):
    """Raised when a payload is not JSON or does not match the expected schema."""
