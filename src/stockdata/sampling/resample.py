"""Random block resampling of a multi-instrument panel."""

from __future__ import annotations

from collections.abc import Mapping

import numpy as np
import pandas as pd

from stockdata.domain.models import ResampledDataset, validate_panel
from stockdata.errors import EmptyEligibleSetError, InsufficientHistoryError
from stockdata.logging.logger import HumanLogger

REPRESENTATIVE_FIELD = "adjusted"


def financial_data_resample(
    panel: Mapping[str, pd.DataFrame],
    instrument_count: int = 50,
    window_length: int = 2 * 252,
    dataset_count: int = 10,
    remove_instruments_with_gaps: bool = True,
    rng: np.random.Generator | int | None = None,
    human_logger: HumanLogger | None = None,
) -> list[ResampledDataset]:
    """Draw ``dataset_count`` random blocks from ``panel``.

    Each block is ``window_length`` consecutive rows starting at a uniformly
    random offset, restricted to at most ``instrument_count`` instruments.
    With gap removal on, only instruments with no missing value inside the
    window are eligible. Single-column fields such as the market index are
    sliced in time only. Draws are independent, so two datasets may share a
    window or an instrument subset.
    """
    if instrument_count <= 0:
        raise ValueError("instrument_count must be positive")
    if window_length <= 0:
        raise ValueError("window_length must be positive")
    if dataset_count <= 0:
        raise ValueError("dataset_count must be positive")

    dates = validate_panel(panel)
    total_rows = len(dates)
    if window_length > total_rows:
        raise InsufficientHistoryError(
            f"window_length ({window_length}) cannot be greater than the date length "
            f"of the panel ({total_rows})"
        )

    generator = rng if isinstance(rng, np.random.Generator) else np.random.default_rng(rng)
    multi_fields, _ = partition_fields(panel)
    reference = panel[_representative_field(multi_fields)]
    column_count = reference.shape[1]

    datasets: list[ResampledDataset] = []
    for number in range(1, dataset_count + 1):
        start = int(generator.integers(0, total_rows - window_length + 1))
        rows = slice(start, start + window_length)

        if remove_instruments_with_gaps:
            window = reference.iloc[rows]
            eligible = np.flatnonzero(window.notna().all(axis=0).to_numpy())
        else:
            eligible = np.arange(column_count)
        if eligible.size == 0:
            raise EmptyEligibleSetError(
                f"Time period {dates[start]} to {dates[start + window_length - 1]} "
                "has no instrument without missing values"
            )
        if eligible.size <= instrument_count:
            selected = eligible
        else:
            selected = np.sort(generator.choice(eligible, size=instrument_count, replace=False))

        fields: dict[str, pd.DataFrame] = {}
        for name, frame in panel.items():
            if name in multi_fields:
                fields[name] = frame.iloc[rows, selected].copy()
            else:
                fields[name] = frame.iloc[rows].copy()
        datasets.append(
            ResampledDataset(
                name=f"dataset {number}",
                fields=fields,
                start=dates[start],
                end=dates[start + window_length - 1],
                instruments=tuple(str(column) for column in reference.columns[selected]),
            )
        )

    (human_logger or HumanLogger()).resample_summary(
        dataset_count, instrument_count, window_length, dates[0], dates[-1]
    )
    return datasets


def partition_fields(panel: Mapping[str, pd.DataFrame]) -> tuple[list[str], list[str]]:
    """Split fields into those with the widest column count and the rest."""
    widest = max(frame.shape[1] for frame in panel.values())
    multi = [name for name, frame in panel.items() if frame.shape[1] == widest]
    single = [name for name in panel if name not in multi]
    return multi, single


def _representative_field(multi_fields: list[str]) -> str:
    if REPRESENTATIVE_FIELD in multi_fields:
        return REPRESENTATIVE_FIELD
    return multi_fields[0]
