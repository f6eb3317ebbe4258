"""Runtime wiring for download and resampling commands."""

from __future__ import annotations

import pickle
from pathlib import Path

import pandas as pd

from stockdata.config import Settings
from stockdata.data.alpaca_data import AlpacaHistoryProvider
from stockdata.data.base import PriceHistoryProvider
from stockdata.data.csv_data import CsvHistoryProvider
from stockdata.data.download import DataAcquirer
from stockdata.data.yfinance_data import YFinanceHistoryProvider
from stockdata.domain.models import AcquisitionResult, ResampledDataset
from stockdata.errors import StockDataError
from stockdata.logging.logger import HumanLogger
from stockdata.sampling.resample import financial_data_resample
from stockdata.state.cache import CacheStore


def build_provider(settings: Settings) -> PriceHistoryProvider:
    """Create the configured price history provider."""
    options = settings.download_options()
    if settings.data_source == "csv":
        return CsvHistoryProvider(data_dir=settings.historical_data_dir)
    if settings.data_source == "alpaca":
        return AlpacaHistoryProvider(
            api_key=settings.alpaca_api_key,
            secret_key=settings.alpaca_secret_key,
            data_base_url=settings.alpaca_data_url,
            options=options,
        )
    return YFinanceHistoryProvider(options)


def build_cache(settings: Settings) -> CacheStore:
    cache_dir = settings.effective_cache_dir()
    return CacheStore(cache_dir, enabled=cache_dir is not None)


def build_acquirer(settings: Settings, human_logger: HumanLogger | None = None) -> DataAcquirer:
    return DataAcquirer(
        provider=build_provider(settings),
        cache=build_cache(settings),
        options=settings.download_options(),
        default_index_symbol=settings.index_symbol,
        human_logger=human_logger or HumanLogger(level=settings.log_level),
    )


def download(
    settings: Settings,
    symbols: list[str],
    start: str,
    end: str,
    index_symbol: str | None = None,
    output: str | None = None,
) -> int:
    """Download a panel, optionally write it to ``output``, and print a summary."""
    human_logger = HumanLogger(level=settings.log_level)
    acquirer = build_acquirer(settings, human_logger)
    try:
        result = acquirer.acquire(
            symbols,
            index_symbol,
            start=start,
            end=end,
            remove_instruments_with_gaps=settings.remove_instruments_with_gaps,
        )
    except StockDataError as exc:
        human_logger.error(str(exc))
        return 1
    if output:
        write_pickle(result.panel, output)
    print(format_download_summary(result))
    return 0


def resample_file(
    settings: Settings,
    input_path: str,
    output_path: str,
    instrument_count: int,
    window_length: int,
    dataset_count: int,
    seed: int | None = None,
) -> int:
    """Resample a stored panel into datasets written as one pickle."""
    human_logger = HumanLogger(level=settings.log_level)
    try:
        panel = pd.read_pickle(input_path)
    except (OSError, EOFError, pickle.UnpicklingError) as exc:
        human_logger.error(f"cannot read panel from {input_path}: {exc}")
        return 1
    if not isinstance(panel, dict):
        human_logger.error(f"{input_path} does not hold a panel of field frames")
        return 1
    try:
        datasets = financial_data_resample(
            panel,
            instrument_count=instrument_count,
            window_length=window_length,
            dataset_count=dataset_count,
            remove_instruments_with_gaps=settings.remove_instruments_with_gaps,
            rng=seed,
            human_logger=human_logger,
        )
    except StockDataError as exc:
        human_logger.error(str(exc))
        return 1
    write_pickle(datasets_to_dict(datasets), output_path)
    return 0


def datasets_to_dict(datasets: list[ResampledDataset]) -> dict[str, dict[str, pd.DataFrame]]:
    """Convert datasets into plain nested dicts keyed by dataset name."""
    return {dataset.name: dict(dataset.fields) for dataset in datasets}


def write_pickle(value: object, path: str) -> None:
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    pd.to_pickle(value, output)


def format_download_summary(result: AcquisitionResult) -> str:
    report = result.report
    adjusted = result.panel["adjusted"]
    lines = [
        f"source: {'cache' if result.from_cache else 'download'}",
        f"rows: {len(adjusted)} | stocks: {adjusted.shape[1]} | fields: {', '.join(result.panel)}",
        f"successes: {report.success_count} | fails: {report.fail_count}",
    ]
    if report.failed:
        lines.append(f"failed: {', '.join(report.failed)}")
    if report.removed_with_gaps:
        lines.append(f"removed with gaps: {', '.join(report.removed_with_gaps)}")
    return "\n".join(lines)
