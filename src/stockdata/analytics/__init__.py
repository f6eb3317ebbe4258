"""Windowed statistics over aligned time series."""

from .rolling import apply_rolling, window_endings

__all__ = ["apply_rolling", "window_endings"]
