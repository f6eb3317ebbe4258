"""Panel, request, and dataset models."""

from .models import (
    FIELD_SUFFIXES,
    INDEX_FIELD,
    OHLCV_FIELDS,
    AcquisitionResult,
    DownloadOptions,
    DownloadReport,
    Panel,
    ResampledDataset,
    validate_panel,
)

__all__ = [
    "FIELD_SUFFIXES",
    "INDEX_FIELD",
    "OHLCV_FIELDS",
    "AcquisitionResult",
    "DownloadOptions",
    "DownloadReport",
    "Panel",
    "ResampledDataset",
    "validate_panel",
]
