"""Environment and CLI runtime configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Self

from dotenv import load_dotenv

from stockdata.domain.models import DownloadOptions
from stockdata.errors import ConfigError

DATA_SOURCES = ("yfinance", "alpaca", "csv")


def parse_bool(value: str | None, default: bool) -> bool:
    """Parse truthy environment strings."""
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def parse_optional_str(value: str | None) -> str | None:
    """Return a stripped string, or None when blank."""
    if value is None:
        return None
    text = value.strip()
    return text or None


def parse_symbols(value: str | None, default: list[str] | None = None) -> list[str]:
    """Parse comma-separated symbols."""
    fallback = default or []
    if not value:
        return list(fallback)
    symbols = [item.strip().upper() for item in value.split(",") if item.strip()]
    return dedupe_symbols(symbols) or list(fallback)


def dedupe_symbols(symbols: list[str]) -> list[str]:
    """Remove duplicate symbols while preserving order."""
    deduped: list[str] = []
    seen: set[str] = set()
    for symbol in symbols:
        if symbol in seen:
            continue
        seen.add(symbol)
        deduped.append(symbol)
    return deduped


@dataclass(frozen=True)
class Settings:
    """Immutable runtime settings."""

    data_source: str = "yfinance"
    cache_dir: str = "."
    use_cache: bool = True
    historical_data_dir: str = "historical_data"
    index_symbol: str | None = None
    remove_instruments_with_gaps: bool = True
    interval: str = "1d"
    timeout: int = 20
    max_retries: int = 3
    log_level: str = "INFO"
    alpaca_api_key: str = ""
    alpaca_secret_key: str = ""
    alpaca_data_url: str = "https://data.alpaca.markets"

    @classmethod
    def from_env(cls) -> Self:
        """Create settings from environment variables."""
        load_dotenv()
        raw = cls(
            data_source=str(os.getenv("DATA_SOURCE", "yfinance")).strip().lower(),
            cache_dir=str(os.getenv("STOCKDATA_CACHE_DIR", ".")).strip(),
            use_cache=parse_bool(os.getenv("STOCKDATA_USE_CACHE"), True),
            historical_data_dir=str(os.getenv("HISTORICAL_DATA_DIR", "historical_data")).strip(),
            index_symbol=parse_optional_str(os.getenv("INDEX_SYMBOL")),
            remove_instruments_with_gaps=parse_bool(
                os.getenv("REMOVE_INSTRUMENTS_WITH_GAPS"), True
            ),
            interval=str(os.getenv("INTERVAL", "1d")).strip(),
            timeout=int(os.getenv("REQUEST_TIMEOUT", "20")),
            max_retries=int(os.getenv("MAX_RETRIES", "3")),
            log_level=str(os.getenv("LOG_LEVEL", "INFO")).strip().upper(),
            alpaca_api_key=str(os.getenv("ALPACA_API_KEY", "")).strip(),
            alpaca_secret_key=str(os.getenv("ALPACA_SECRET_KEY", "")).strip(),
            alpaca_data_url=str(
                os.getenv("ALPACA_DATA_URL", "https://data.alpaca.markets")
            ).strip(),
        )
        return raw.validate()

    def with_overrides(self, **kwargs: object) -> Self:
        """Return a new settings object with updated values."""
        updated = replace(self, **kwargs)
        return updated.validate()

    def download_options(self) -> DownloadOptions:
        return DownloadOptions(
            interval=self.interval,
            timeout=self.timeout,
            max_retries=self.max_retries,
        )

    def effective_cache_dir(self) -> str | None:
        """Return the cache directory, or None when caching is off."""
        if not self.use_cache or not self.cache_dir:
            return None
        return self.cache_dir

    def validate(self) -> Self:
        """Validate settings fields."""
        if self.data_source not in DATA_SOURCES:
            raise ConfigError(f"data_source must be one of {', '.join(DATA_SOURCES)}")
        if self.timeout <= 0:
            raise ConfigError("timeout must be positive")
        if self.max_retries <= 0:
            raise ConfigError("max_retries must be positive")
        if self.data_source == "alpaca" and (
            not self.alpaca_api_key or not self.alpaca_secret_key
        ):
            raise ConfigError("alpaca data source requires ALPACA_API_KEY and ALPACA_SECRET_KEY")
        if self.data_source == "csv" and not self.historical_data_dir:
            raise ConfigError("csv data source requires historical_data_dir")
        return self
