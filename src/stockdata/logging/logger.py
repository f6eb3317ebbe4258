"""Concise human-readable pipeline logger."""

from __future__ import annotations

import logging
from collections.abc import Sequence


class HumanLogger:
    """Console logger with fixed line types."""

    def __init__(self, level: str = "INFO") -> None:
        self._logger = logging.getLogger("stockdata")
        self._logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        self._logger.propagate = False
        if not self._logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter("%(asctime)s | %(message)s", "%Y-%m-%d %H:%M:%S")
            handler.setFormatter(formatter)
            self._logger.addHandler(handler)

    def download_started(self, count: int) -> None:
        self._logger.info("download | %d stocks", count)

    def download_progress(self, position: int, total: int, symbol: str, ok: bool) -> None:
        width = len(str(total))
        status = "ok" if ok else "fail"
        self._logger.info(
            "download | %s/%d | %s | %s", str(position).rjust(width), total, symbol, status
        )

    def download_summary(self, successes: int, failures: Sequence[str]) -> None:
        self._logger.info("download | successes %d | fails %d", successes, len(failures))
        if failures:
            self._logger.warning("download | failed to download: %s", ", ".join(failures))

    def gaps_removed(self, symbols: Sequence[str]) -> None:
        if symbols:
            self._logger.info(
                "download | removed %d stocks with missing values: %s",
                len(symbols),
                ", ".join(symbols),
            )

    def index_download(self, symbol: str) -> None:
        self._logger.info("download | index %s", symbol)

    def resample_summary(
        self,
        dataset_count: int,
        instrument_count: int,
        window_length: int,
        first_date: object,
        last_date: object,
    ) -> None:
        self._logger.info(
            "resample | %d datasets | N %d | T %d | source %s to %s",
            dataset_count,
            instrument_count,
            window_length,
            self._short_date(first_date),
            self._short_date(last_date),
        )

    def error(self, message: str) -> None:
        self._logger.error("error | %s", message)

    @staticmethod
    def _short_date(value: object) -> str:
        if hasattr(value, "strftime"):
            return value.strftime("%Y-%m-%d")
        return str(value)
