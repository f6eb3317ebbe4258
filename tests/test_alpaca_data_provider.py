from __future__ import annotations

from typing import Any

import pytest

from stockdata.data.alpaca_data import AlpacaHistoryProvider
from stockdata.domain.models import OHLCV_FIELDS, DownloadOptions


class FakeResponse:
    def __init__(self, status_code: int, payload: dict[str, Any] | None = None) -> None:
        self.status_code = status_code
        self._payload = payload or {}
        self.text = "error body" if status_code >= 400 else ""

    def json(self) -> dict[str, Any]:
        return self._payload


class FakeSession:
    def __init__(self, responses: list[FakeResponse]) -> None:
        self.responses = list(responses)
        self.requests: list[tuple[str, dict[str, str]]] = []

    def get(self, url: str, params: dict[str, str], timeout: int) -> FakeResponse:
        _ = timeout
        self.requests.append((url, dict(params)))
        return self.responses.pop(0)


def _bar(day: str, close: float) -> dict[str, Any]:
    return {
        "t": f"{day}T05:00:00Z",
        "o": close - 1.0,
        "h": close + 1.0,
        "l": close - 2.0,
        "c": close,
        "v": 1000,
    }


def _provider(session: FakeSession, **kwargs: Any) -> AlpacaHistoryProvider:
    provider = AlpacaHistoryProvider("key", "secret", **kwargs)
    provider.session = session
    return provider


def test_stock_history_combines_raw_and_adjusted_bars() -> None:
    session = FakeSession(
        [
            FakeResponse(200, {"bars": [_bar("2024-01-02", 100.0)], "next_page_token": "p2"}),
            FakeResponse(200, {"bars": [_bar("2024-01-03", 102.0)], "next_page_token": None}),
            FakeResponse(200, {"bars": [_bar("2024-01-02", 50.0), _bar("2024-01-03", 51.0)]}),
        ]
    )

    bars = _provider(session).get_history("aapl", "2024-01-01", "2024-02-01")

    assert list(bars.columns) == list(OHLCV_FIELDS)
    assert len(bars) == 2
    assert list(bars["close"]) == [100.0, 102.0]
    assert list(bars["adjusted"]) == [50.0, 51.0]
    first_url, first_params = session.requests[0]
    assert first_url.endswith("/v2/stocks/AAPL/bars")
    assert first_params["adjustment"] == "raw"
    assert first_params["timeframe"] == "1Day"
    assert session.requests[1][1]["page_token"] == "p2"
    assert session.requests[2][1]["adjustment"] == "all"


def test_crypto_history_uses_close_as_adjusted() -> None:
    session = FakeSession(
        [FakeResponse(200, {"bars": {"BTC/USD": [_bar("2024-01-02", 42000.0)]}})]
    )

    bars = _provider(session).get_history("BTCUSD", "2024-01-01", "2024-02-01")

    assert session.requests[0][1]["symbols"] == "BTC/USD"
    assert float(bars["adjusted"].iloc[0]) == 42000.0


def test_server_errors_are_retried(monkeypatch) -> None:
    monkeypatch.setattr("stockdata.data.alpaca_data.sleep", lambda _seconds: None)
    session = FakeSession(
        [
            FakeResponse(503),
            FakeResponse(200, {"bars": [_bar("2024-01-02", 10.0)]}),
            FakeResponse(200, {"bars": [_bar("2024-01-02", 9.0)]}),
        ]
    )

    bars = _provider(session, options=DownloadOptions(max_retries=2)).get_history(
        "SPY", "2024-01-01", "2024-02-01"
    )

    assert float(bars["adjusted"].iloc[0]) == 9.0
    assert len(session.requests) == 3


def test_client_errors_raise_value_error() -> None:
    session = FakeSession([FakeResponse(403)])

    with pytest.raises(ValueError, match="Alpaca data error 403"):
        _provider(session).get_history("SPY", "2024-01-01", "2024-02-01")


def test_missing_fields_raise_value_error() -> None:
    session = FakeSession([FakeResponse(200, {"bars": [{"t": "2024-01-02T05:00:00Z"}]})])

    with pytest.raises(ValueError, match="missing OHLCV"):
        _provider(session).get_history("SPY", "2024-01-01", "2024-02-01")
