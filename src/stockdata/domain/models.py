"""Core data pipeline models."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from stockdata.errors import AlignmentInvariantViolation

# Positional layout of a provider frame. Sub-fields are read by position only,
# an instrument named "LOW" must never be confused with the low field.
OHLCV_FIELDS: tuple[str, ...] = ("open", "high", "low", "close", "volume", "adjusted")
FIELD_SUFFIXES: dict[str, str] = {
    "open": "Open",
    "high": "High",
    "low": "Low",
    "close": "Close",
    "volume": "Volume",
    "adjusted": "Adjusted",
}
INDEX_FIELD = "index"

Panel = dict[str, pd.DataFrame]


@dataclass(frozen=True)
class DownloadOptions:
    """Recognized download options, forwarded to the history provider."""

    interval: str = "1d"
    timeout: int = 20
    max_retries: int = 3
    extra: Mapping[str, Any] = field(default_factory=dict)

    def fingerprint(self) -> dict[str, Any]:
        """Return a JSON-friendly view used for cache identity."""
        return {
            "interval": self.interval,
            "timeout": self.timeout,
            "max_retries": self.max_retries,
            "extra": {str(key): repr(value) for key, value in sorted(self.extra.items())},
        }


@dataclass(frozen=True)
class DownloadReport:
    """Per-instrument outcome of a download request."""

    requested: list[str]
    succeeded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    removed_with_gaps: list[str] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def fail_count(self) -> int:
        return len(self.failed)


@dataclass(frozen=True)
class AcquisitionResult:
    """Aligned panel plus the diagnostics of how it was obtained."""

    panel: Panel
    report: DownloadReport
    from_cache: bool = False


@dataclass(frozen=True)
class ResampledDataset:
    """One random block drawn from a panel."""

    name: str
    fields: Mapping[str, pd.DataFrame]
    start: pd.Timestamp
    end: pd.Timestamp
    instruments: tuple[str, ...]

    def __getitem__(self, key: str) -> pd.DataFrame:
        return self.fields[key]

    def __contains__(self, key: object) -> bool:
        return key in self.fields

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)

    def keys(self) -> list[str]:
        return list(self.fields)

    @property
    def num_rows(self) -> int:
        first = next(iter(self.fields.values()))
        return len(first)


def validate_panel(panel: Mapping[str, pd.DataFrame]) -> pd.DatetimeIndex:
    """Check that every field shares one date index and return it."""
    if not panel:
        raise AlignmentInvariantViolation("panel has no fields")
    frames = list(panel.items())
    reference_name, reference = frames[0]
    for name, frame in frames[1:]:
        if not frame.index.equals(reference.index):
            raise AlignmentInvariantViolation(
                f"date indices do not match: '{name}' differs from '{reference_name}'"
            )
    if not reference.index.is_monotonic_increasing or not reference.index.is_unique:
        raise AlignmentInvariantViolation("panel index must be sorted and unique")
    return pd.DatetimeIndex(reference.index)
