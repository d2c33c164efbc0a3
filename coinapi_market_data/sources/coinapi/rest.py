"""CoinAPI market data REST implementation."""

from __future__ import annotations

import logging
import os
import re
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Sequence

import requests
from dateutil.parser import isoparse

from ...contracts.coinapi.interface import CoinapiMarketDataSource
from ...core.errors import ApiRequestError, ApiTransientError, PeriodNotSupportedError, ResponseFormatError
from ...core.periods import parse_period
from ...core.queries import ExchangeRateWindow
from ...models.coinapi import AssetMetadata, ExchangeMetadata, ExchangeRateBar, PeriodDescription
from ...models.shared import Period

logger = logging.getLogger(__name__)

BASE_URL = "https://rest.coinapi.io/v1"
EXCHANGE_RATE_HISTORY_ENDPOINT = "/exchangerate/{base}/{quote}/history"
PERIODS_ENDPOINT = "/exchangerate/history/periods"
ASSETS_ENDPOINT = "/assets"
EXCHANGES_ENDPOINT = "/exchanges"
DEFAULT_TIMEOUT = 10.0
BASE_URL_ENV = "COINAPI_BASE_URL"
TIMEOUT_ENV = "COINAPI_TIMEOUT"
TRANSIENT_STATUS_CODES = {429}
# Any well-formed id, including units this client does not model (1MTH, 1YRS).
PERIOD_ID_RE = re.compile(r"^[1-9][0-9]*[A-Z]{3}$")


class CoinapiRestDataSource(CoinapiMarketDataSource):
    """Requests-backed implementation of :class:`CoinapiMarketDataSource`.

    Credentials are not handled here: pass a ``session`` that already carries
    whatever headers your CoinAPI plan requires.
    """

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self._session = session or requests.Session()
        self._owns_session = session is None
        self._base_url = (base_url or os.environ.get(BASE_URL_ENV) or BASE_URL).rstrip("/")
        self._timeout = timeout if timeout is not None else _timeout_from_env()

    # ------------------------------------------------------------------
    # Historical series
    def get_exchange_rate_history(self, query: ExchangeRateWindow) -> Sequence[ExchangeRateBar]:
        path = EXCHANGE_RATE_HISTORY_ENDPOINT.format(base=query.pair.base, quote=query.pair.quote)
        params: dict[str, Any] = {
            "period_id": query.period.identifier,
            "limit": query.limit,
        }
        if query.start_time:
            params["time_start"] = _to_iso(query.start_time)
        if query.end_time:
            params["time_end"] = _to_iso(query.end_time)
        payload = self._request_list(path, params, endpoint_name="exchange rate history")
        bars = [self._parse_bar(raw) for raw in payload]
        return sorted(bars, key=lambda bar: bar.time_period_start)

    def get_supported_periods(self) -> Sequence[PeriodDescription]:
        payload = self._request_list(PERIODS_ENDPOINT, {}, endpoint_name="history periods")
        descriptions: list[PeriodDescription] = []
        for raw in payload:
            period_id = str(_require(raw, "period_id"))
            if not PERIOD_ID_RE.match(period_id):
                raise ResponseFormatError(f"Malformed CoinAPI period id {period_id!r}")
            try:
                period = parse_period(period_id)
            except PeriodNotSupportedError:
                # Month and year periods (1MTH, 1YRS...) have no PeriodUnit.
                logger.debug("Skipping period %r", period_id)
                continue
            descriptions.append(self._parse_period_description(raw, period))
        return descriptions

    # ------------------------------------------------------------------
    # Metadata
    def get_assets(self, asset_ids: Sequence[str] | None = None) -> Sequence[AssetMetadata]:
        params = self._filter_params("filter_asset_id", asset_ids)
        payload = self._request_list(ASSETS_ENDPOINT, params, endpoint_name="assets")
        return [self._parse_asset(raw) for raw in payload]

    def get_exchanges(self, exchange_ids: Sequence[str] | None = None) -> Sequence[ExchangeMetadata]:
        params = self._filter_params("filter_exchange_id", exchange_ids)
        payload = self._request_list(EXCHANGES_ENDPOINT, params, endpoint_name="exchanges")
        return [self._parse_exchange(raw) for raw in payload]

    # ------------------------------------------------------------------
    # Internal helpers
    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def _filter_params(self, key: str, ids: Sequence[str] | None) -> dict[str, Any]:
        if not ids:
            return {}
        if isinstance(ids, str):
            ids = [ids]
        return {key: ",".join(ids)}

    def _request_list(self, path: str, params: dict[str, Any], *, endpoint_name: str) -> list[dict[str, Any]]:
        payload = self._request(path, params)
        if not isinstance(payload, list):
            raise ResponseFormatError(f"CoinAPI {endpoint_name} payload is not a list")
        for entry in payload:
            if not isinstance(entry, dict):
                raise ResponseFormatError(f"Unexpected CoinAPI {endpoint_name} entry: {entry!r}")
        return payload

    def _request(self, path: str, params: dict[str, Any]) -> Any:
        url = f"{self._base_url}{path}"
        try:
            response = self._session.get(url, params=params, timeout=self._timeout)
        except requests.RequestException as exc:
            logger.warning("CoinAPI request to %s failed: %s", path, exc)
            raise ApiTransientError(f"Failed to call CoinAPI endpoint {path}: {exc}") from exc

        logger.debug("CoinAPI GET %s -> %s", path, response.status_code)
        if response.status_code >= 400:
            self._raise_http_error(path, response.status_code)
        return self._decode_response(response)

    def _decode_response(self, response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ResponseFormatError("CoinAPI returned a non-JSON payload") from exc

    def _raise_http_error(self, path: str, status_code: int) -> None:
        message = f"CoinAPI endpoint {path} returned HTTP {status_code}"
        if status_code in TRANSIENT_STATUS_CODES or status_code >= 500:
            logger.warning(message)
            raise ApiTransientError(message)
        raise ApiRequestError(message, status_code=status_code)

    def _parse_bar(self, raw: dict[str, Any]) -> ExchangeRateBar:
        return ExchangeRateBar(
            time_period_start=_parse_datetime(_require(raw, "time_period_start")),
            time_period_end=_parse_datetime(_require(raw, "time_period_end")),
            time_open=_parse_datetime(_require(raw, "time_open")),
            time_close=_parse_datetime(_require(raw, "time_close")),
            rate_open=_parse_decimal(_require(raw, "rate_open")),
            rate_high=_parse_decimal(_require(raw, "rate_high")),
            rate_low=_parse_decimal(_require(raw, "rate_low")),
            rate_close=_parse_decimal(_require(raw, "rate_close")),
        )

    def _parse_period_description(self, raw: dict[str, Any], period: Period) -> PeriodDescription:
        return {
            "period": period,
            "length_seconds": _parse_int(raw.get("length_seconds") or 0),
            "length_months": _parse_int(raw.get("length_months") or 0),
            "unit_count": _parse_int(raw.get("unit_count") or 0),
            "unit_name": str(raw.get("unit_name") or ""),
            "display_name": str(raw.get("display_name") or ""),
        }

    def _parse_asset(self, raw: dict[str, Any]) -> AssetMetadata:
        price = raw.get("price_usd")
        return {
            "asset_id": str(_require(raw, "asset_id")),
            "name": str(raw.get("name") or ""),
            "type_is_crypto": _parse_int_bool(_require(raw, "type_is_crypto")),
            **_parse_coverage(raw),
            "price_usd": _parse_decimal(price) if price is not None else None,
        }

    def _parse_exchange(self, raw: dict[str, Any]) -> ExchangeMetadata:
        return {
            "exchange_id": str(_require(raw, "exchange_id")),
            "website": str(raw.get("website") or ""),
            "name": str(raw.get("name") or ""),
            **_parse_coverage(raw),
        }


def _parse_coverage(raw: dict[str, Any]) -> dict[str, Any]:
    """Decode the data coverage and volume fields shared by assets and exchanges."""

    return {
        "data_start": _parse_optional_date(raw.get("data_start")),
        "data_end": _parse_optional_date(raw.get("data_end")),
        "data_quote_start": _parse_optional_datetime(raw.get("data_quote_start")),
        "data_quote_end": _parse_optional_datetime(raw.get("data_quote_end")),
        "data_orderbook_start": _parse_optional_datetime(raw.get("data_orderbook_start")),
        "data_orderbook_end": _parse_optional_datetime(raw.get("data_orderbook_end")),
        "data_trade_start": _parse_optional_datetime(raw.get("data_trade_start")),
        "data_trade_end": _parse_optional_datetime(raw.get("data_trade_end")),
        "data_symbols_count": _parse_int(_require(raw, "data_symbols_count")),
        "volume_1hrs_usd": _parse_decimal(_require(raw, "volume_1hrs_usd")),
        "volume_1day_usd": _parse_decimal(_require(raw, "volume_1day_usd")),
        "volume_1mth_usd": _parse_decimal(_require(raw, "volume_1mth_usd")),
    }


def _require(raw: dict[str, Any], key: str) -> Any:
    try:
        value = raw[key]
    except KeyError as exc:
        raise ResponseFormatError(f"CoinAPI payload missing field {key!r}") from exc
    if value is None:
        raise ResponseFormatError(f"CoinAPI payload field {key!r} is null")
    return value


def _parse_decimal(value: Any) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ResponseFormatError(f"Invalid decimal value {value!r}") from exc


def _parse_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ResponseFormatError(f"Invalid integer value {value!r}") from exc


def _parse_int_bool(value: Any) -> bool:
    if value in (0, 1) and not isinstance(value, float):
        return bool(value)
    raise ResponseFormatError(f"Expected 0 or 1, got {value!r}")


def _parse_datetime(value: Any) -> datetime:
    # CoinAPI emits seven fractional digits, which isoparse truncates to microseconds.
    try:
        parsed = isoparse(str(value))
    except ValueError as exc:
        raise ResponseFormatError(f"Invalid timestamp {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _parse_optional_datetime(value: Any) -> datetime | None:
    if value is None:
        return None
    return _parse_datetime(value)


def _parse_optional_date(value: Any) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise ResponseFormatError(f"Invalid date {value!r}") from exc


def _to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _timeout_from_env() -> float:
    raw = os.environ.get(TIMEOUT_ENV)
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{TIMEOUT_ENV} must be a number, got {raw!r}") from exc
