"""Alpaca price history provider."""

from __future__ import annotations

from time import sleep

import pandas as pd
import requests

from stockdata.data.base import looks_like_crypto_symbol
from stockdata.domain.models import OHLCV_FIELDS, DownloadOptions


class AlpacaHistoryProvider:
    """Fetch daily bars from Alpaca's data API.

    Stock bars are requested twice, raw and with split/dividend adjustment;
    the adjusted close fills the ``adjusted`` column. Crypto has no
    adjustment, so its close doubles as the adjusted price.
    """

    def __init__(
        self,
        api_key: str,
        secret_key: str,
        data_base_url: str = "https://data.alpaca.markets",
        options: DownloadOptions | None = None,
        limit: int = 10000,
    ) -> None:
        self.options = options or DownloadOptions()
        self.data_base_url = data_base_url.rstrip("/")
        self.timeframe = self._normalize_timeframe(self.options.interval)
        self.limit = limit
        self.session = requests.Session()
        self.session.headers.update(
            {
                "APCA-API-KEY-ID": api_key,
                "APCA-API-SECRET-KEY": secret_key,
            }
        )

    def get_history(self, symbol: str, start: str, end: str) -> pd.DataFrame:
        normalized_symbol = symbol.strip().upper()
        if looks_like_crypto_symbol(normalized_symbol):
            crypto_symbol = self._to_alpaca_crypto_symbol(normalized_symbol)
            bars = self._fetch_bars(
                "/v1beta3/crypto/us/bars",
                {"symbols": crypto_symbol},
                start,
                end,
                key=crypto_symbol,
            )
            raw = self._bars_to_frame(normalized_symbol, bars)
            adjusted_close = raw["close"]
        else:
            path = f"/v2/stocks/{normalized_symbol}/bars"
            raw = self._bars_to_frame(
                normalized_symbol,
                self._fetch_bars(path, {"adjustment": "raw"}, start, end),
            )
            adjusted = self._bars_to_frame(
                normalized_symbol,
                self._fetch_bars(path, {"adjustment": "all"}, start, end),
            )
            adjusted_close = adjusted["close"].reindex(raw.index)
        frame = raw.copy()
        frame["adjusted"] = adjusted_close
        if frame.empty:
            raise ValueError(f"No bars returned for {symbol}")
        return frame[list(OHLCV_FIELDS)]

    def _fetch_bars(
        self,
        path: str,
        params: dict[str, str],
        start: str,
        end: str,
        key: str | None = None,
    ) -> list[dict]:
        query = {
            **params,
            **{str(name): str(value) for name, value in self.options.extra.items()},
            "timeframe": self.timeframe,
            "start": start,
            "end": end,
            "limit": str(self.limit),
            "sort": "asc",
        }
        bars: list[dict] = []
        while True:
            payload = self._request_with_retry(path, query)
            raw = payload.get("bars") or []
            if isinstance(raw, dict):
                raw = raw[key] if key in raw else next(iter(raw.values()), [])
            if isinstance(raw, list):
                bars.extend(raw)
            token = payload.get("next_page_token")
            if not token:
                return bars
            query["page_token"] = str(token)

    def _request_with_retry(self, path: str, params: dict[str, str]) -> dict:
        url = f"{self.data_base_url}{path}"
        max_retries = max(1, self.options.max_retries)
        for attempt in range(1, max_retries + 1):
            try:
                response = self.session.get(url, params=params, timeout=self.options.timeout)
            except requests.RequestException as exc:
                if attempt == max_retries:
                    raise ValueError(f"Alpaca data request failed: {exc}") from exc
                sleep(float(attempt))
                continue
            if response.status_code == 429:
                if attempt == max_retries:
                    raise ValueError("Alpaca data rate limit exceeded")
                sleep(float(attempt))
                continue
            if response.status_code >= 500:
                if attempt == max_retries:
                    raise ValueError(f"Alpaca data server error: {response.status_code}")
                sleep(float(attempt))
                continue
            if response.status_code >= 400:
                detail = response.text.strip() or "No response body"
                raise ValueError(f"Alpaca data error {response.status_code}: {detail}")
            return response.json()
        raise ValueError("Alpaca data request exhausted retries")

    @staticmethod
    def _bars_to_frame(symbol: str, bars: list[dict]) -> pd.DataFrame:
        frame = pd.DataFrame(bars)
        required = {"o", "h", "l", "c", "v", "t"}
        if not required.issubset(frame.columns):
            raise ValueError(f"{symbol}: bar payload missing OHLCV fields")
        frame = frame.rename(
            columns={
                "o": "open",
                "h": "high",
                "l": "low",
                "c": "close",
                "v": "volume",
                "t": "time",
            }
        )
        timestamps = pd.DatetimeIndex(pd.to_datetime(frame["time"], utc=True))
        frame.index = timestamps.tz_localize(None).normalize()
        frame.index.name = "date"
        frame = frame.sort_index()
        frame = frame[["open", "high", "low", "close", "volume"]]
        return frame.apply(pd.to_numeric, errors="coerce")

    @staticmethod
    def _normalize_timeframe(value: str) -> str:
        mapping = {
            "1d": "1Day",
            "day": "1Day",
            "1day": "1Day",
            "1wk": "1Week",
            "1week": "1Week",
            "week": "1Week",
            "1mo": "1Month",
            "1month": "1Month",
            "month": "1Month",
        }
        return mapping.get(value.strip().lower(), "1Day")

    @staticmethod
    def _to_alpaca_crypto_symbol(symbol: str) -> str:
        compact = symbol.strip().upper().replace("/", "").replace("-", "")
        if compact.endswith("USDT"):
            compact = f"{compact[:-4]}USD"
        if compact.endswith("USD") and len(compact) > 3:
            return f"{compact[:-3]}/USD"
        return symbol.strip().upper()
