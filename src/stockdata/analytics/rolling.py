"""Trailing-window statistics at a configurable stride."""

from __future__ import annotations

import math
from collections.abc import Callable
from typing import Any

import numpy as np
import pandas as pd

from stockdata.errors import InsufficientHistoryError


def window_endings(length: int, by: int, gap: int) -> list[int]:
    """Return 1-based window endings, stepping back from ``length`` by ``by`` down to ``gap``."""
    return sorted(range(length, gap - 1, -by))


def apply_rolling(
    frame: pd.DataFrame | pd.Series,
    width: float = math.inf,
    by: int = 1,
    gap: float | None = None,
    aggregate_fn: Callable[[pd.Series], Any] = np.mean,
) -> pd.DataFrame:
    """Apply ``aggregate_fn`` to each column over trailing windows.

    ``width=math.inf`` gives an expanding window. Endings are anchored to the
    last row and step backward by ``by`` until ``gap`` (defaults to ``width``).
    Windows that would start before the first row are clipped. The result
    starts with an all-NaN row stamped with the first date of ``frame``,
    followed by one row per ending.
    """
    data = frame.to_frame() if isinstance(frame, pd.Series) else frame
    length = len(data)
    if length == 0:
        raise InsufficientHistoryError("cannot roll over an empty series")
    _require_whole("by", by, allow_inf=False)
    _require_whole("width", width)
    if by < 1:
        raise ValueError("by must be a positive integer")
    if width < 1:
        raise ValueError("width must be positive")
    if not math.isinf(width) and width > length:
        raise InsufficientHistoryError(
            f"width ({width}) longer than the time series length ({length})"
        )

    if gap is None:
        gap = width
    _require_whole("gap", gap)
    if math.isinf(gap):
        gap = 1
    if gap < 1:
        raise ValueError("gap must be positive")
    if gap > length:
        raise InsufficientHistoryError(f"gap ({gap}) longer than the time series length ({length})")

    endings = window_endings(length, int(by), int(gap))
    rows = [np.full(data.shape[1], np.nan)]
    for ending in endings:
        first = 1 if math.isinf(width) else max(ending - int(width) + 1, 1)
        window = data.iloc[first - 1 : ending]
        rows.append(
            [aggregate_fn(window.iloc[:, position]) for position in range(data.shape[1])]
        )

    index = data.index[[0, *(ending - 1 for ending in endings)]]
    return pd.DataFrame(rows, index=index, columns=data.columns, dtype=float)


def _require_whole(name: str, value: float, allow_inf: bool = True) -> None:
    if allow_inf and isinstance(value, float) and math.isinf(value):
        return
    if isinstance(value, bool) or not math.isfinite(value) or value != int(value):
        raise ValueError(f"{name} must be an integer, got {value!r}")
