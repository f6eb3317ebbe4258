"""Price history providers and the multi-symbol downloader."""

from .alpaca_data import AlpacaHistoryProvider
from .base import PriceHistoryProvider
from .csv_data import CsvHistoryProvider
from .download import DataAcquirer, stock_data_download
from .yfinance_data import YFinanceHistoryProvider

__all__ = [
    "PriceHistoryProvider",
    "CsvHistoryProvider",
    "AlpacaHistoryProvider",
    "YFinanceHistoryProvider",
    "DataAcquirer",
    "stock_data_download",
]
