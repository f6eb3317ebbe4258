"""Price history download, caching, and block resampling for backtests."""

from stockdata.analytics.rolling import apply_rolling
from stockdata.data.align import align_series
from stockdata.data.download import DataAcquirer, stock_data_download
from stockdata.domain.models import (
    AcquisitionResult,
    DownloadOptions,
    DownloadReport,
    ResampledDataset,
)
from stockdata.sampling.resample import financial_data_resample
from stockdata.state.cache import CacheKey, CacheStore

__all__ = [
    "AcquisitionResult",
    "CacheKey",
    "CacheStore",
    "DataAcquirer",
    "DownloadOptions",
    "DownloadReport",
    "ResampledDataset",
    "align_series",
    "apply_rolling",
    "financial_data_resample",
    "stock_data_download",
]
