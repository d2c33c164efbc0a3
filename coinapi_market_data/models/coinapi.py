"""Typed records decoded from CoinAPI market data responses."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import NamedTuple, TypedDict

from .shared import Period

# History responses can run to tens of thousands of rows, so bars stay tuples.


class ExchangeRateBar(NamedTuple):
    """One OHLC bar from ``exchangerate/{base}/{quote}/history``."""

    time_period_start: datetime
    time_period_end: datetime
    time_open: datetime
    time_close: datetime
    rate_open: Decimal
    rate_high: Decimal
    rate_low: Decimal
    rate_close: Decimal


class AssetMetadata(TypedDict):
    """Asset listing entry returned by the ``assets`` endpoint."""

    asset_id: str
    name: str
    type_is_crypto: bool
    data_start: date | None
    data_end: date | None
    data_quote_start: datetime | None
    data_quote_end: datetime | None
    data_orderbook_start: datetime | None
    data_orderbook_end: datetime | None
    data_trade_start: datetime | None
    data_trade_end: datetime | None
    data_symbols_count: int
    volume_1hrs_usd: Decimal
    volume_1day_usd: Decimal
    volume_1mth_usd: Decimal
    price_usd: Decimal | None


class ExchangeMetadata(TypedDict):
    """Exchange listing entry returned by the ``exchanges`` endpoint."""

    exchange_id: str
    website: str
    name: str
    data_start: date | None
    data_end: date | None
    data_quote_start: datetime | None
    data_quote_end: datetime | None
    data_orderbook_start: datetime | None
    data_orderbook_end: datetime | None
    data_trade_start: datetime | None
    data_trade_end: datetime | None
    data_symbols_count: int
    volume_1hrs_usd: Decimal
    volume_1day_usd: Decimal
    volume_1mth_usd: Decimal


class PeriodDescription(TypedDict):
    """Row of ``exchangerate/history/periods``."""

    period: Period
    length_seconds: int
    length_months: int
    unit_count: int
    unit_name: str
    display_name: str
