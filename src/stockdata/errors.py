"""Exceptions raised by the data pipeline."""


class StockDataError(Exception):
    """Base exception for all package errors."""


class ConfigError(StockDataError, ValueError):
    """Raised when runtime configuration is invalid or missing."""


class AcquisitionError(StockDataError):
    """Raised when a download request cannot be carried out."""


class TotalAcquisitionFailure(AcquisitionError):
    """Raised when no instrument in a request could be downloaded."""


class IndexDownloadError(AcquisitionError):
    """Raised when the benchmark index cannot be downloaded."""


class AlignmentInvariantViolation(StockDataError, ValueError):
    """Raised when panel fields disagree on rows, columns, or dates."""


class InsufficientHistoryError(StockDataError, ValueError):
    """Raised when a window is longer than the available history."""


class EmptyEligibleSetError(StockDataError, ValueError):
    """Raised when a resampling window has no instrument without gaps."""
