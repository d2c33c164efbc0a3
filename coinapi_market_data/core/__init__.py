"""Core utilities for CoinAPI market data fetching."""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = [
    "ExchangeRateWindow",
    "PeriodResolver",
    "ExactMatch",
    "NearestMismatch",
    "SUPPORTED_PERIODS",
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

_lazy_targets = {
    "ExchangeRateWindow": ("queries", "ExchangeRateWindow"),
    "PeriodResolver": ("periods", "PeriodResolver"),
    "ExactMatch": ("periods", "ExactMatch"),
    "NearestMismatch": ("periods", "NearestMismatch"),
    "SUPPORTED_PERIODS": ("periods", "SUPPORTED_PERIODS"),
    "parse_period": ("periods", "parse_period"),
    "resolve_exact": ("periods", "resolve_exact"),
    "resolve_nearest": ("periods", "resolve_nearest"),
    "resolve_strict": ("periods", "resolve_strict"),
    "CoinapiError": ("errors", "CoinapiError"),
    "PeriodNotSupportedError": ("errors", "PeriodNotSupportedError"),
    "ApiTransientError": ("errors", "ApiTransientError"),
    "ApiRequestError": ("errors", "ApiRequestError"),
    "ResponseFormatError": ("errors", "ResponseFormatError"),
}


def __getattr__(name: str) -> Any:
    try:
        module_name, attr_name = _lazy_targets[name]
    except KeyError as exc:
        raise AttributeError(f"module 'coinapi_market_data.core' has no attribute {name!r}") from exc
    module = import_module(f"{__name__}.{module_name}")
    value = getattr(module, attr_name)
    globals()[name] = value
    return value
