"""Shared utilities for chromaprofiles."""

from chromaprofiles.core.utils.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
