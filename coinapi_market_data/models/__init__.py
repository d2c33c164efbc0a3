"""Domain models for CoinAPI market data."""

from .coinapi import AssetMetadata, ExchangeMetadata, ExchangeRateBar, PeriodDescription
from .shared import AssetPair, Period, PeriodUnit

__all__ = [
    "AssetPair",
    "Period",
    "PeriodUnit",
    "AssetMetadata",
    "ExchangeMetadata",
    "ExchangeRateBar",
    "PeriodDescription",
]
