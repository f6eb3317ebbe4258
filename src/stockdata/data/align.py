"""Outer-join alignment of single-column price series."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import pandas as pd


def align_series(series: Sequence[pd.Series | pd.DataFrame]) -> pd.DataFrame:
    """Merge single-column series into one wide frame on the union of their dates.

    Columns keep input order, rows are sorted ascending, and cells absent from
    an input are NaN. A single input is returned as-is.
    """
    if not series:
        raise ValueError("align_series requires at least one series")
    frames = [item.to_frame() if isinstance(item, pd.Series) else item for item in series]
    if len(frames) == 1:
        return frames[0]
    merged = pd.concat(frames, axis=1, join="outer", sort=False)
    return merged.sort_index()


def strip_field_suffix(frame: pd.DataFrame, suffix: str) -> pd.DataFrame:
    """Drop a trailing ``.<suffix>`` decoration from every column name."""
    decoration = f".{suffix}"
    renamed = frame.copy()
    renamed.columns = [str(column).removesuffix(decoration) for column in frame.columns]
    return renamed


def has_inner_na(column: pd.Series) -> bool:
    """Return true when a value is missing between the first and last observation.

    Leading and trailing runs of NaN are not gaps.
    """
    observed = np.flatnonzero(column.notna().to_numpy())
    if observed.size == 0:
        return False
    inner = column.iloc[observed[0] : observed[-1] + 1]
    return bool(inner.isna().any())


def columns_with_inner_na(frame: pd.DataFrame) -> list[str]:
    """List the columns of ``frame`` that contain an interior gap."""
    return [
        str(column)
        for position, column in enumerate(frame.columns)
        if has_inner_na(frame.iloc[:, position])
    ]
