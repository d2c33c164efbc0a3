"""CoinAPI market data client.

This module exposes the public API for the data source contract, models, and
the period resolution helpers used to build exchange rate history queries.
"""

from .contracts.coinapi.interface import CoinapiMarketDataSource
from .core.errors import (
    ApiRequestError,
    ApiTransientError,
    CoinapiError,
    PeriodNotSupportedError,
    ResponseFormatError,
)
from .core.periods import (
    SUPPORTED_PERIODS,
    ExactMatch,
    NearestMismatch,
    PeriodResolver,
    parse_period,
    resolve_exact,
    resolve_nearest,
    resolve_strict,
)
from .core.queries import ExchangeRateWindow
from .models.coinapi import AssetMetadata, ExchangeMetadata, ExchangeRateBar, PeriodDescription
from .models.shared import AssetPair, Period, PeriodUnit
from .sources.coinapi.rest import CoinapiRestDataSource

__all__ = [
    "CoinapiMarketDataSource",
    "CoinapiRestDataSource",
    "ExchangeRateWindow",
    "AssetPair",
    "Period",
    "PeriodUnit",
    "AssetMetadata",
    "ExchangeMetadata",
    "ExchangeRateBar",
    "PeriodDescription",
    "SUPPORTED_PERIODS",
    "PeriodResolver",
    "ExactMatch",
    "NearestMismatch",
    "parse_period",
    "resolve_exact",
    "resolve_nearest",
    "resolve_strict",
    "CoinapiError",
    "PeriodNotSupportedError",
    "ApiTransientError",
    "ApiRequestError",
    "ResponseFormatError",
]
