"""Content-addressed on-disk cache for downloaded panels."""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd

CACHE_VARIABLE = "stockdata"
CACHE_PREFIX = "stockdata"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheKey:
    """Request parameters that identify a cache entry.

    ``identifiers`` keeps the caller's order; only the sorted copy is hashed.
    """

    identifiers: tuple[str, ...]
    start: str
    end: str
    extra: Mapping[str, Any] = field(default_factory=dict)

    def digest(self) -> str:
        material = {
            "identifiers": sorted(self.identifiers),
            "start": self.start,
            "end": self.end,
            "extra": dict(self.extra),
        }
        encoded = json.dumps(material, sort_keys=True, default=str).encode("utf-8")
        return hashlib.sha256(encoded).hexdigest()[:16]

    def filename(self) -> str:
        return f"{CACHE_PREFIX}_from_{self.start}_to_{self.end}_({self.digest()}).pkl"


class CacheStore:
    """Load-or-compute persistence keyed by a hash of the request.

    Entries are created once and never rewritten. A stale entry is only
    dropped by deleting its file.
    """

    def __init__(self, cache_dir: str | Path | None = ".", enabled: bool = True) -> None:
        self.enabled = enabled and cache_dir is not None
        self.cache_dir = Path(cache_dir) if cache_dir is not None else None

    def path_for(self, key: CacheKey) -> Path:
        if self.cache_dir is None:
            raise ValueError("cache directory is not configured")
        return self.cache_dir / key.filename()

    def load(self, key: CacheKey) -> Any | None:
        if not self.enabled:
            return None
        path = self.path_for(key)
        if not path.exists():
            logger.debug("cache miss | %s", path)
            return None
        payload = pd.read_pickle(path)
        if not isinstance(payload, dict) or CACHE_VARIABLE not in payload:
            raise ValueError(f"cache file {path} does not hold a '{CACHE_VARIABLE}' entry")
        logger.info("cache | loading stock data from local file %s", path)
        return payload[CACHE_VARIABLE]

    def save(self, key: CacheKey, value: Any) -> Path | None:
        if not self.enabled:
            return None
        path = self.path_for(key)
        if path.exists():
            return path
        path.parent.mkdir(parents=True, exist_ok=True)
        handle, temp_name = tempfile.mkstemp(prefix=".tmp_", suffix=".pkl", dir=path.parent)
        os.close(handle)
        try:
            pd.to_pickle({CACHE_VARIABLE: value}, temp_name)
            # Exclusive create: an entry written concurrently by another process wins.
            os.link(temp_name, path)
        except FileExistsError:
            logger.debug("cache entry already exists | %s", path)
            return path
        finally:
            Path(temp_name).unlink(missing_ok=True)
        logger.info("cache | saved stock data to local file %s for future use", path)
        return path

    def load_or_compute(self, key: CacheKey, compute_fn: Callable[[], Any]) -> Any:
        """Return the cached value for ``key``, computing and persisting it on a miss.

        Errors from ``compute_fn`` propagate and leave nothing on disk.
        """
        cached = self.load(key)
        if cached is not None:
            return cached
        value = compute_fn()
        self.save(key, value)
        return value

    def list_files(self) -> list[Path]:
        if self.cache_dir is None or not self.cache_dir.exists():
            return []
        return sorted(self.cache_dir.glob(f"{CACHE_PREFIX}_from_*.pkl"))
