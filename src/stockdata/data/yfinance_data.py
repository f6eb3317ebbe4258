"""Yahoo Finance price history provider."""

from __future__ import annotations

import re
from typing import Any

import pandas as pd

from stockdata.data.base import looks_like_crypto_symbol, split_market_symbol
from stockdata.domain.models import OHLCV_FIELDS, DownloadOptions


class YFinanceHistoryProvider:
    """Fetch daily OHLCV plus adjusted close from Yahoo Finance via yfinance."""

    def __init__(self, options: DownloadOptions | None = None) -> None:
        self.options = options or DownloadOptions()
        self.interval = self._normalize_interval(self.options.interval)

    def get_history(self, symbol: str, start: str, end: str) -> pd.DataFrame:
        try:
            import yfinance as yf
        except ImportError as exc:
            raise ValueError(
                "yfinance is required for the yfinance data source. Install it with `pip install yfinance`."
            ) from exc

        ticker = self._resolve_yfinance_symbol(symbol)
        try:
            history = yf.Ticker(ticker).history(
                start=start,
                end=end,
                interval=self.interval,
                auto_adjust=False,
                actions=False,
                timeout=self.options.timeout,
                **dict(self.options.extra),
            )
        except Exception as exc:
            raise ValueError(f"yfinance request failed for {symbol} ({ticker}): {exc}") from exc

        return self._normalize_history(history, symbol, ticker)

    @staticmethod
    def _normalize_history(history: Any, symbol: str, ticker: str) -> pd.DataFrame:
        if history is None:
            raise ValueError(f"yfinance returned no rows for {symbol} ({ticker})")
        frame = pd.DataFrame(history).copy()
        if frame.empty:
            raise ValueError(f"yfinance returned no rows for {symbol} ({ticker})")

        columns = {
            "open": YFinanceHistoryProvider._pick_column(frame, "open"),
            "high": YFinanceHistoryProvider._pick_column(frame, "high"),
            "low": YFinanceHistoryProvider._pick_column(frame, "low"),
            "close": YFinanceHistoryProvider._pick_column(frame, "close"),
            "volume": YFinanceHistoryProvider._pick_column(frame, "volume"),
            "adjusted": YFinanceHistoryProvider._pick_column(frame, "adj_close"),
        }
        missing = [name for name in ("open", "high", "low", "close") if columns[name] is None]
        if missing:
            raise ValueError(f"yfinance payload missing {', '.join(missing)} for {symbol} ({ticker})")

        # Bars are dated by the exchange-local calendar day.
        index = pd.DatetimeIndex(pd.to_datetime(frame.index, utc=False))
        if index.tz is not None:
            index = index.tz_localize(None)
        index = index.normalize()
        normalized = pd.DataFrame(index=index)
        for name in ("open", "high", "low", "close"):
            normalized[name] = pd.to_numeric(frame[columns[name]], errors="coerce").to_numpy()
        if columns["volume"] is None:
            normalized["volume"] = 0.0
        else:
            normalized["volume"] = pd.to_numeric(frame[columns["volume"]], errors="coerce").to_numpy()
        adjusted_column = columns["adjusted"] or columns["close"]
        normalized["adjusted"] = pd.to_numeric(frame[adjusted_column], errors="coerce").to_numpy()
        normalized = normalized[~normalized.index.duplicated(keep="last")].sort_index()
        normalized.index.name = "date"
        return normalized[list(OHLCV_FIELDS)]

    @staticmethod
    def _pick_column(frame: pd.DataFrame, field: str) -> Any | None:
        for column in frame.columns:
            key = YFinanceHistoryProvider._column_key(column)
            if key == field or key.startswith(f"{field}_"):
                return column
        return None

    @staticmethod
    def _column_key(value: Any) -> str:
        if isinstance(value, tuple):
            text = "_".join(str(part) for part in value if part is not None)
        else:
            text = str(value)
        return re.sub(r"[^a-zA-Z0-9]+", "_", text).strip("_").lower()

    @staticmethod
    def _normalize_interval(value: str) -> str:
        mapping = {
            "1d": "1d",
            "day": "1d",
            "1day": "1d",
            "1wk": "1wk",
            "week": "1wk",
            "1week": "1wk",
            "1mo": "1mo",
            "month": "1mo",
            "1month": "1mo",
        }
        return mapping.get(value.strip().lower(), "1d")

    @staticmethod
    def _resolve_yfinance_symbol(symbol: str) -> str:
        market, bare_symbol = split_market_symbol(symbol)
        compact = bare_symbol.strip().upper().replace("/", "").replace("-", "")

        if (market or "").upper() == "CRYPTO" or looks_like_crypto_symbol(compact):
            for quote in ("USDT", "USD"):
                if compact.endswith(quote) and len(compact) > len(quote):
                    base = compact[: -len(quote)]
                    return f"{base}-USD"
        return bare_symbol.strip().upper()
