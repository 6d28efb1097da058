"""Configuration models for chromaprofiles."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DownloadConfig(BaseModel):
    """Working directories and payload limits for archive downloads."""

    model_config = ConfigDict(extra="ignore")

    download_dir: Path = Field(
        default=Path("downloads"), description="Working directory for transient downloads"
    )
    archive_dir: Path = Field(
        default=Path("profile-archives"),
        description="Permanent home for archives that produced a profile",
    )
    max_file_size_bytes: int = Field(
        default=3_000_000, gt=0, description="Largest archive accepted from a provider"
    )
    accepted_extensions: tuple[str, ...] = Field(
        default=(".ChromaEffects", ".zip"),
        description="Archive extensions accepted for transfer (case-insensitive)",
    )
    member_suffix: str = Field(
        default=".xml", description="Suffix of lighting configuration members inside an archive"
    )
    timeout_s: float = Field(default=10.0, gt=0.0, description="Per-attempt network timeout")
    max_members: int = Field(default=2000, gt=0, description="Maximum members per archive")
    max_extracted_bytes: int = Field(
        default=50_000_000, gt=0, description="Maximum total uncompressed bytes per archive"
    )

    @field_validator("accepted_extensions")
    @classmethod
    def validate_extensions(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Require a leading dot on every extension."""
        if not v:
            raise ValueError("accepted_extensions cannot be empty")
        for ext in v:
            if not ext.startswith("."):
                raise ValueError(f"Extension must start with '.': {ext}")
        return v


class RateLimitConfig(BaseModel):
    """Token-bucket settings applied to a provider's outbound calls."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    reservoir: int = Field(default=50, gt=0, description="Permits available per interval")
    refresh_interval_s: float = Field(
        default=10.0, gt=0.0, description="Interval after which the reservoir refills"
    )
    max_concurrent: int = Field(default=1, gt=0, description="Operations in flight at once")
    min_time_s: float = Field(
        default=0.25, ge=0.0, description="Minimum spacing between operation starts"
    )


class GoogleDriveConfig(BaseModel):
    """Google Drive provider settings."""

    model_config = ConfigDict(extra="ignore")

    api_base_url: str = "https://www.googleapis.com/drive/v3"
    api_key: str | None = Field(
        default=None, description="Drive API key (falls back to GOOGLE_API_KEY)"
    )
    user_agent: str = "chromaprofiles/1.0"
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)


class StoreConfig(BaseModel):
    """Link/profile store settings."""

    model_config = ConfigDict(extra="ignore")

    backend: str = Field(default="sqlite", pattern="^(memory|sqlite)$")
    db_path: Path = Path("data/chromaprofiles.db")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    structured: bool = False
    filename: str | None = None


class AppConfig(BaseModel):
    """Application-level configuration."""

    model_config = ConfigDict(extra="ignore")

    download: DownloadConfig = Field(default_factory=DownloadConfig)
    google_drive: GoogleDriveConfig = Field(default_factory=GoogleDriveConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def default_path(cls) -> Path:
        """Default path for application config."""
        return Path("config.yaml")
