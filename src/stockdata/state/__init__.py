"""Local persistence for downloaded panels."""

from .cache import CacheKey, CacheStore

__all__ = ["CacheKey", "CacheStore"]
