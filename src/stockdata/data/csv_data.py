"""CSV-backed price history provider."""

from __future__ import annotations

from pathlib import Path

import pandas as pd

from stockdata.data.base import split_market_symbol
from stockdata.domain.models import OHLCV_FIELDS


class CsvHistoryProvider:
    """Load daily OHLCV history from local CSV files named ``<SYMBOL>.csv``."""

    date_column_candidates = ("date", "datetime", "timestamp")
    adjusted_column_candidates = ("adjusted", "adj close", "adj_close", "adjclose")

    def __init__(self, data_dir: str) -> None:
        self.data_dir = Path(data_dir)
        self._frames: dict[str, pd.DataFrame] = {}

    def get_history(self, symbol: str, start: str, end: str) -> pd.DataFrame:
        frame = self._load(symbol)
        window = frame.loc[(frame.index >= pd.Timestamp(start)) & (frame.index < pd.Timestamp(end))]
        if window.empty:
            raise ValueError(f"{symbol}: no rows between {start} and {end}")
        return window.copy()

    def _load(self, symbol: str) -> pd.DataFrame:
        cached = self._frames.get(symbol)
        if cached is not None:
            return cached
        path = self._resolve_path(symbol)
        if path is None:
            raise ValueError(f"No CSV found for {symbol} under {self.data_dir}")
        normalized = self._normalize_csv(pd.read_csv(path), symbol)
        self._frames[symbol] = normalized
        return normalized

    def _resolve_path(self, symbol: str) -> Path | None:
        market, bare_symbol = split_market_symbol(symbol)
        names = [f"{bare_symbol.upper()}.csv", f"{bare_symbol.lower()}.csv"]
        candidates: list[Path] = []
        if market is not None:
            for directory in (market.upper(), market.lower()):
                candidates.extend(self.data_dir / directory / name for name in names)
        candidates.extend(self.data_dir / name for name in names)
        for candidate in candidates:
            if candidate.exists():
                return candidate
        return None

    def _normalize_csv(self, frame: pd.DataFrame, symbol: str) -> pd.DataFrame:
        lower_to_original = {str(column).strip().lower(): column for column in frame.columns}
        date_column = self._pick_column(lower_to_original, self.date_column_candidates)
        if date_column is None:
            candidates = ", ".join(self.date_column_candidates)
            raise ValueError(f"CSV missing date column. Expected one of: {candidates}")

        normalized = pd.DataFrame(index=pd.to_datetime(frame[date_column].to_numpy()))
        for name in ("open", "high", "low", "close", "volume"):
            source = lower_to_original.get(name)
            if source is None:
                raise ValueError(f"{symbol}: CSV missing required column '{name}'")
            normalized[name] = pd.to_numeric(frame[source], errors="coerce").to_numpy()
        adjusted = self._pick_column(lower_to_original, self.adjusted_column_candidates)
        source = adjusted if adjusted is not None else lower_to_original["close"]
        normalized["adjusted"] = pd.to_numeric(frame[source], errors="coerce").to_numpy()
        normalized.index.name = "date"
        normalized = normalized[~normalized.index.duplicated(keep="last")].sort_index()
        if normalized.empty:
            raise ValueError(f"{symbol}: data has no rows")
        return normalized[list(OHLCV_FIELDS)]

    @staticmethod
    def _pick_column(lower_to_original: dict[str, str], candidates: tuple[str, ...]) -> str | None:
        for candidate in candidates:
            if candidate in lower_to_original:
                return lower_to_original[candidate]
        return None
