"""Protocols describing CoinAPI market data sources."""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from ...core.queries import ExchangeRateWindow
from ...models.coinapi import AssetMetadata, ExchangeMetadata, ExchangeRateBar, PeriodDescription


@runtime_checkable
class CoinapiMarketDataSource(Protocol):
    """Data source capable of serving CoinAPI market data."""

    # Historical series -------------------------------------------------
    def get_exchange_rate_history(self, query: ExchangeRateWindow) -> Sequence[ExchangeRateBar]:
        """Return exchange rate bars for the pair, period and window of ``query``."""

    def get_supported_periods(self) -> Sequence[PeriodDescription]:
        """Return the history periods advertised by the API."""

    # Metadata ----------------------------------------------------------
    def get_assets(self, asset_ids: Sequence[str] | None = None) -> Sequence[AssetMetadata]:
        """Return asset metadata, optionally filtered by asset id."""

    def get_exchanges(self, exchange_ids: Sequence[str] | None = None) -> Sequence[ExchangeMetadata]:
        """Return exchange metadata, optionally filtered by exchange id."""

    def close(self) -> None:
        """Release any transport resources held by the source."""
