from __future__ import annotations

import json
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest
import requests

from coinapi_market_data.contracts.coinapi.interface import CoinapiMarketDataSource
from coinapi_market_data.core.errors import ApiRequestError, ApiTransientError, ResponseFormatError
from coinapi_market_data.core.queries import ExchangeRateWindow
from coinapi_market_data.models.shared import AssetPair, Period, PeriodUnit
from coinapi_market_data.sources.coinapi import rest as coinapi_module
from coinapi_market_data.sources.coinapi.rest import CoinapiRestDataSource

DATA_DIR = Path(__file__).parent / "data"


def _load(name: str):
    return json.loads((DATA_DIR / name).read_text(encoding="utf-8"))


class StubResponse:
    def __init__(self, payload, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class StubSession:
    def __init__(self) -> None:
        self.calls: list[dict] = []
        self._responses: list[StubResponse] = []
        self.closed = False

    def queue(self, payload, status_code: int = 200) -> None:
        self._responses.append(StubResponse(payload, status_code))

    def get(self, url, params=None, timeout=0):
        if params is None:
            params = {}
        self.calls.append({"url": url, "params": dict(params), "timeout": timeout})
        if not self._responses:
            raise AssertionError("No queued response left for stub session")
        return self._responses.pop(0)

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def pair() -> AssetPair:
    return AssetPair("XDB", "USD")


@pytest.fixture()
def session_and_source(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv(coinapi_module.BASE_URL_ENV, raising=False)
    monkeypatch.delenv(coinapi_module.TIMEOUT_ENV, raising=False)
    session = StubSession()
    source = CoinapiRestDataSource(session=session)
    return session, source


def test_source_satisfies_protocol(session_and_source) -> None:
    _, source = session_and_source

    assert isinstance(source, CoinapiMarketDataSource)


def test_get_exchange_rate_history_parses_and_sorts(session_and_source, pair) -> None:
    session, source = session_and_source
    start = datetime(2022, 3, 1, tzinfo=timezone.utc)
    end = datetime(2022, 3, 1, 2, tzinfo=timezone.utc)
    window = ExchangeRateWindow(pair=pair, period=Period(PeriodUnit.HOUR, 1), start_time=start, end_time=end, limit=2)
    session.queue(_load("xdb_history.json"))

    bars = source.get_exchange_rate_history(window)

    assert len(bars) == 2
    assert bars[0].time_period_start == start
    assert bars[1].time_period_end == end
    assert bars[0].rate_open == Decimal("0.237710238410992")
    assert bars[1].rate_close == Decimal("0.240771503674284")
    assert bars[0].time_close == datetime(2022, 3, 1, 0, 59, tzinfo=timezone.utc)
    call = session.calls[0]
    assert call["url"] == "https://rest.coinapi.io/v1/exchangerate/XDB/USD/history"
    assert call["params"] == {
        "period_id": "1HRS",
        "limit": 2,
        "time_start": "2022-03-01T00:00:00Z",
        "time_end": "2022-03-01T02:00:00Z",
    }
    assert call["timeout"] == coinapi_module.DEFAULT_TIMEOUT


def test_history_sends_resolved_period_without_time_bounds(session_and_source, pair) -> None:
    session, source = session_and_source
    window = ExchangeRateWindow(pair=pair, period=timedelta(hours=7.1))
    session.queue([])

    assert source.get_exchange_rate_history(window) == []
    assert session.calls[-1]["params"] == {"period_id": "8HRS", "limit": 100}


def test_naive_datetimes_are_sent_as_utc(session_and_source, pair) -> None:
    session, source = session_and_source
    window = ExchangeRateWindow(
        pair=pair,
        period=Period(PeriodUnit.DAY, 1),
        start_time=datetime(2024, 1, 1, 12, 30),
    )
    session.queue([])

    source.get_exchange_rate_history(window)

    assert session.calls[-1]["params"]["time_start"] == "2024-01-01T12:30:00Z"


def test_get_assets(session_and_source) -> None:
    session, source = session_and_source
    session.queue(_load("assets.json"))

    assets = source.get_assets()

    btc, usd = assets
    assert btc["asset_id"] == "BTC"
    assert btc["type_is_crypto"] is True
    assert btc["data_start"] == date(2010, 7, 17)
    assert btc["data_quote_end"] == datetime(2022, 3, 1, 10, 21, 37, 137082, tzinfo=timezone.utc)
    assert btc["data_symbols_count"] == 97823
    assert btc["price_usd"] == Decimal("43721.4421935305")
    assert usd["type_is_crypto"] is False
    assert usd["data_quote_start"] is None
    assert usd["price_usd"] is None
    assert session.calls[-1]["url"].endswith(coinapi_module.ASSETS_ENDPOINT)
    assert session.calls[-1]["params"] == {}


def test_get_assets_with_filter(session_and_source) -> None:
    session, source = session_and_source
    session.queue([])

    source.get_assets(["BTC", "ETH"])

    assert session.calls[-1]["params"] == {"filter_asset_id": "BTC,ETH"}


def test_get_exchanges(session_and_source) -> None:
    session, source = session_and_source
    session.queue(_load("exchanges.json"))

    exchanges = source.get_exchanges("BITSTAMP")

    bitstamp, newdex = exchanges
    assert bitstamp["name"] == "Bitstamp Ltd."
    assert bitstamp["data_end"] == date(2022, 3, 1)
    assert bitstamp["volume_1day_usd"] == Decimal("421876349.17")
    assert newdex["data_start"] is None
    assert newdex["data_trade_end"] is None
    assert session.calls[-1]["url"].endswith(coinapi_module.EXCHANGES_ENDPOINT)
    assert session.calls[-1]["params"] == {"filter_exchange_id": "BITSTAMP"}


def test_get_supported_periods_skips_month_periods(session_and_source) -> None:
    session, source = session_and_source
    session.queue(_load("periods.json"))

    periods = source.get_supported_periods()

    assert [entry["period"] for entry in periods] == [
        Period(PeriodUnit.SECOND, 1),
        Period(PeriodUnit.MINUTE, 30),
        Period(PeriodUnit.HOUR, 12),
        Period(PeriodUnit.DAY, 10),
    ]
    for entry in periods:
        assert entry["length_seconds"] == entry["period"].seconds
    assert session.calls[-1]["url"].endswith(coinapi_module.PERIODS_ENDPOINT)


@pytest.mark.parametrize("status_code", [429, 500, 503, 550])
def test_transient_http_errors(session_and_source, status_code: int) -> None:
    session, source = session_and_source
    session.queue({"error": "slow down"}, status_code=status_code)

    with pytest.raises(ApiTransientError):
        source.get_assets()


@pytest.mark.parametrize("status_code", [400, 401, 403, 404])
def test_request_http_errors(session_and_source, status_code: int) -> None:
    session, source = session_and_source
    session.queue({"error": "nope"}, status_code=status_code)

    with pytest.raises(ApiRequestError) as excinfo:
        source.get_exchanges()

    assert excinfo.value.status_code == status_code


def test_non_json_payload(session_and_source) -> None:
    session, source = session_and_source
    session.queue(ValueError("Expecting value"))

    with pytest.raises(ResponseFormatError):
        source.get_assets()


def test_non_list_payload(session_and_source) -> None:
    session, source = session_and_source
    session.queue({"unexpected": True})

    with pytest.raises(ResponseFormatError):
        source.get_exchanges()


def test_missing_field_in_bar(session_and_source, pair) -> None:
    session, source = session_and_source
    bar = _load("xdb_history.json")[0]
    del bar["rate_close"]
    session.queue([bar])

    with pytest.raises(ResponseFormatError):
        source.get_exchange_rate_history(ExchangeRateWindow(pair=pair, period=Period(PeriodUnit.HOUR, 1)))


def test_invalid_crypto_flag(session_and_source) -> None:
    session, source = session_and_source
    asset = _load("assets.json")[0]
    asset["type_is_crypto"] = 2
    session.queue([asset])

    with pytest.raises(ResponseFormatError):
        source.get_assets()


def test_configuration_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(coinapi_module.BASE_URL_ENV, "https://rest-sandbox.coinapi.io/v1/")
    monkeypatch.setenv(coinapi_module.TIMEOUT_ENV, "2.5")
    session = StubSession()
    source = CoinapiRestDataSource(session=session)
    session.queue([])

    source.get_assets()

    assert session.calls[-1]["url"] == "https://rest-sandbox.coinapi.io/v1/assets"
    assert session.calls[-1]["timeout"] == 2.5


def test_invalid_timeout_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(coinapi_module.TIMEOUT_ENV, "soon")

    with pytest.raises(ValueError):
        CoinapiRestDataSource(session=StubSession())


def test_close_leaves_injected_session_open(session_and_source) -> None:
    session, source = session_and_source

    source.close()

    assert session.closed is False


def test_malformed_symbols_count(session_and_source) -> None:
    session, source = session_and_source
    exchange = _load("exchanges.json")[0]
    exchange["data_symbols_count"] = "abc"
    session.queue([exchange])

    with pytest.raises(ResponseFormatError):
        source.get_exchanges()


@pytest.mark.parametrize("key", ["length_seconds", "length_months", "unit_count"])
def test_malformed_period_lengths(session_and_source, key: str) -> None:
    session, source = session_and_source
    row = _load("periods.json")[0]
    row[key] = "x"
    session.queue([row])

    with pytest.raises(ResponseFormatError):
        source.get_supported_periods()


@pytest.mark.parametrize("period_id", ["garbage", "", "05SEC", "1sec"])
def test_malformed_period_id(session_and_source, period_id: str) -> None:
    session, source = session_and_source
    session.queue([{"period_id": period_id}])

    with pytest.raises(ResponseFormatError):
        source.get_supported_periods()


def test_network_failure_is_transient(monkeypatch: pytest.MonkeyPatch) -> None:
    class FailingSession(StubSession):
        def get(self, url, params=None, timeout=0):
            raise requests.ConnectionError("connection refused")

    monkeypatch.delenv(coinapi_module.BASE_URL_ENV, raising=False)
    source = CoinapiRestDataSource(session=FailingSession())

    with pytest.raises(ApiTransientError):
        source.get_assets()
