"""Link store errors."""

from __future__ import annotations


class StoreError(Exception):
    """Base error raised by link store backends."""


class StoreConnectionError(StoreError):
    """Raised when a backend is used before ``initialize`` or after ``close``."""
