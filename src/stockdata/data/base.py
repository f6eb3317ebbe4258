"""Price history provider contract."""

from __future__ import annotations

from typing import Protocol

import pandas as pd


class PriceHistoryProvider(Protocol):
    """Interface for per-symbol daily history retrieval."""

    def get_history(self, symbol: str, start: str, end: str) -> pd.DataFrame:
        """Return six columns (open, high, low, close, volume, adjusted) by position.

        The frame is indexed by date and covers ``[start, end)``.
        """


def split_market_symbol(symbol: str) -> tuple[str | None, str]:
    """Split an optional ``MARKET:SYMBOL`` prefix."""
    value = symbol.strip()
    if ":" not in value:
        return None, value
    market, bare_symbol = value.split(":", 1)
    market = market.strip()
    bare_symbol = bare_symbol.strip()
    if not market or not bare_symbol:
        return None, value
    return market, bare_symbol


def looks_like_crypto_symbol(symbol: str) -> bool:
    compact = symbol.strip().upper().replace("/", "").replace("-", "")
    if compact.endswith("USDT") and len(compact) >= 7:
        return True
    if compact.endswith("USD") and len(compact) >= 6:
        return True
    return False
