"""Robust multi-symbol download into an aligned panel."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import pandas as pd

from stockdata.data.align import align_series, columns_with_inner_na, strip_field_suffix
from stockdata.data.base import PriceHistoryProvider
from stockdata.data.yfinance_data import YFinanceHistoryProvider
from stockdata.domain.models import (
    FIELD_SUFFIXES,
    INDEX_FIELD,
    OHLCV_FIELDS,
    AcquisitionResult,
    DownloadOptions,
    DownloadReport,
    Panel,
)
from stockdata.errors import (
    AcquisitionError,
    AlignmentInvariantViolation,
    IndexDownloadError,
    TotalAcquisitionFailure,
)
from stockdata.logging.logger import HumanLogger
from stockdata.state.cache import CacheKey, CacheStore

logger = logging.getLogger(__name__)

ADJUSTED_POSITION = OHLCV_FIELDS.index("adjusted")


class DataAcquirer:
    """Download OHLCV history for many symbols, one at a time.

    A symbol whose download raises or returns a frame of the wrong shape is
    recorded as failed and skipped; the batch only fails when every symbol
    does. Successful panels go through the cache store when one is enabled.
    """

    def __init__(
        self,
        provider: PriceHistoryProvider,
        cache: CacheStore | None = None,
        options: DownloadOptions | None = None,
        default_index_symbol: str | None = None,
        human_logger: HumanLogger | None = None,
    ) -> None:
        self.provider = provider
        self.cache = cache or CacheStore(None, enabled=False)
        self.options = options or DownloadOptions()
        self.default_index_symbol = default_index_symbol
        self.human_logger = human_logger or HumanLogger()

    def acquire(
        self,
        symbols: Sequence[str],
        index_symbol: str | None = None,
        *,
        start: str,
        end: str,
        remove_instruments_with_gaps: bool = True,
    ) -> AcquisitionResult:
        if not start or not end:
            raise AcquisitionError("Arguments start and end have to be passed.")
        requested = list(dict.fromkeys(str(symbol).strip() for symbol in symbols))
        requested = [symbol for symbol in requested if symbol]
        if not requested:
            raise AcquisitionError("At least one stock symbol is required.")
        resolved_index = index_symbol if index_symbol is not None else self.default_index_symbol

        key = CacheKey(
            identifiers=tuple(requested),
            start=str(start),
            end=str(end),
            extra={
                "index_symbol": resolved_index,
                "remove_instruments_with_gaps": remove_instruments_with_gaps,
                "options": self.options.fingerprint(),
            },
        )
        reports: list[DownloadReport] = []

        def compute() -> Panel:
            panel, report = self._download(
                requested, resolved_index, str(start), str(end), remove_instruments_with_gaps
            )
            reports.append(report)
            return panel

        panel = self.cache.load_or_compute(key, compute)
        if reports:
            return AcquisitionResult(panel=panel, report=reports[0], from_cache=False)

        panel = reorder_columns(panel, requested)
        # Failures and gap removals are not persisted; both show up as absent columns.
        present = set(panel["adjusted"].columns) if "adjusted" in panel else set()
        report = DownloadReport(
            requested=requested,
            succeeded=[symbol for symbol in requested if symbol in present],
            failed=[symbol for symbol in requested if symbol not in present],
        )
        return AcquisitionResult(panel=panel, report=report, from_cache=True)

    def _download(
        self,
        symbols: list[str],
        index_symbol: str | None,
        start: str,
        end: str,
        remove_instruments_with_gaps: bool,
    ) -> tuple[Panel, DownloadReport]:
        series: dict[str, list[pd.Series]] = {name: [] for name in OHLCV_FIELDS}
        succeeded: list[str] = []
        failed: list[str] = []

        total = len(symbols)
        self.human_logger.download_started(total)
        for position, symbol in enumerate(symbols, start=1):
            bars = self._fetch(symbol, start, end)
            if bars is None:
                failed.append(symbol)
            else:
                succeeded.append(symbol)
                for column, name in enumerate(OHLCV_FIELDS):
                    decorated = f"{symbol}.{FIELD_SUFFIXES[name]}"
                    series[name].append(bars.iloc[:, column].rename(decorated))
            self.human_logger.download_progress(position, total, symbol, bars is not None)

        self.human_logger.download_summary(len(succeeded), failed)
        if not succeeded:
            raise TotalAcquisitionFailure("Failed to download data from any stock.")

        panel: Panel = {
            name: strip_field_suffix(align_series(series[name]), FIELD_SUFFIXES[name])
            for name in OHLCV_FIELDS
        }

        removed: list[str] = []
        if remove_instruments_with_gaps:
            removed = columns_with_inner_na(panel["adjusted"])
            if removed:
                panel = {name: frame.drop(columns=removed) for name, frame in panel.items()}
                self.human_logger.gaps_removed(removed)
            if panel["adjusted"].shape[1] == 0:
                raise TotalAcquisitionFailure("Every downloaded stock has missing values.")

        column_counts = {name: frame.shape[1] for name, frame in panel.items()}
        if len(set(column_counts.values())) != 1:
            raise AlignmentInvariantViolation(
                f"Number of columns does not coincide across fields: {column_counts}"
            )

        if index_symbol:
            panel[INDEX_FIELD] = self._download_index(index_symbol, start, end, panel["adjusted"])

        row_counts = {name: frame.shape[0] for name, frame in panel.items()}
        if len(set(row_counts.values())) != 1:
            raise AlignmentInvariantViolation(
                f"Number of rows does not coincide across fields: {row_counts}"
            )

        report = DownloadReport(
            requested=list(symbols),
            succeeded=[symbol for symbol in succeeded if symbol not in removed],
            failed=failed,
            removed_with_gaps=removed,
        )
        return panel, report

    def _download_index(
        self,
        index_symbol: str,
        start: str,
        end: str,
        adjusted: pd.DataFrame,
    ) -> pd.DataFrame:
        self.human_logger.index_download(index_symbol)
        bars = self._fetch(index_symbol, start, end)
        if bars is None:
            raise IndexDownloadError(f'Failed to download index "{index_symbol}".')
        decorated = f"{index_symbol}.{FIELD_SUFFIXES['adjusted']}"
        frame = bars.iloc[:, ADJUSTED_POSITION].rename(decorated).to_frame()
        if not frame.index.equals(adjusted.index):
            raise AlignmentInvariantViolation("Date of stocks prices and market index do not match.")
        return strip_field_suffix(frame, FIELD_SUFFIXES["adjusted"])

    def _fetch(self, symbol: str, start: str, end: str) -> pd.DataFrame | None:
        try:
            bars = self.provider.get_history(symbol, start, end)
        except Exception as exc:
            logger.warning("download failed for %s: %s", symbol, exc)
            return None
        if not isinstance(bars, pd.DataFrame) or bars.empty:
            logger.warning("download for %s returned no rows", symbol)
            return None
        if bars.shape[1] != len(OHLCV_FIELDS):
            logger.warning(
                "download for %s returned %d columns, expected %d",
                symbol,
                bars.shape[1],
                len(OHLCV_FIELDS),
            )
            return None
        if not isinstance(bars.index, pd.DatetimeIndex):
            logger.warning("download for %s is not indexed by date", symbol)
            return None
        return bars[~bars.index.duplicated(keep="last")].sort_index()


def reorder_columns(panel: Panel, symbols: Sequence[str]) -> Panel:
    """Put instrument columns in the caller's order, leaving the index field alone."""
    reordered: Panel = {}
    for name, frame in panel.items():
        if name == INDEX_FIELD:
            reordered[name] = frame
            continue
        ordered = [symbol for symbol in symbols if symbol in frame.columns]
        ordered.extend(column for column in frame.columns if column not in ordered)
        reordered[name] = frame.loc[:, ordered]
    return reordered


def stock_data_download(
    symbols: Sequence[str],
    index_symbol: str | None = None,
    *,
    start: str,
    end: str,
    remove_instruments_with_gaps: bool = True,
    cache_dir: str | None = ".",
    provider: PriceHistoryProvider | None = None,
    options: DownloadOptions | None = None,
) -> AcquisitionResult:
    """Download ``symbols`` into a panel, caching under ``cache_dir`` unless it is None."""
    resolved_options = options or DownloadOptions()
    acquirer = DataAcquirer(
        provider=provider or YFinanceHistoryProvider(resolved_options),
        cache=CacheStore(cache_dir, enabled=cache_dir is not None),
        options=resolved_options,
    )
    return acquirer.acquire(
        symbols,
        index_symbol,
        start=start,
        end=end,
        remove_instruments_with_gaps=remove_instruments_with_gaps,
    )
