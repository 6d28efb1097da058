"""Configuration management for chromaprofiles."""

from chromaprofiles.core.config.loader import (
    configure_logging,
    detect_format,
    load_app_config,
    load_config,
)
from chromaprofiles.core.config.models import (
    AppConfig,
    DownloadConfig,
    GoogleDriveConfig,
    LoggingConfig,
    RateLimitConfig,
    StoreConfig,
)

__all__ = [
    # Loaders
    "detect_format",
    "load_config",
    "load_app_config",
    "configure_logging",
    # Models
    "AppConfig",
    "DownloadConfig",
    "GoogleDriveConfig",
    "RateLimitConfig",
    "StoreConfig",
    "LoggingConfig",
]
