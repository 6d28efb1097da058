"""Tests for configuration models and loaders."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from chromaprofiles.core.config.loader import detect_format, load_app_config, load_config
from chromaprofiles.core.config.models import AppConfig, DownloadConfig, RateLimitConfig


def test_defaults_match_provider_limits() -> None:
    config = AppConfig()

    assert config.download.max_file_size_bytes == 3_000_000
    assert config.download.accepted_extensions == (".ChromaEffects", ".zip")
    assert config.download.member_suffix == ".xml"
    assert config.download.timeout_s == 10.0
    assert config.google_drive.rate_limit == RateLimitConfig(
        reservoir=50, refresh_interval_s=10.0, max_concurrent=1, min_time_s=0.25
    )
    assert config.google_drive.api_base_url == "https://www.googleapis.com/drive/v3"


def test_download_config_rejects_extension_without_dot() -> None:
    with pytest.raises(ValidationError):
        DownloadConfig(accepted_extensions=("zip",))


@pytest.mark.parametrize(
    ("name", "fmt"), [("a.json", "json"), ("a.yaml", "yaml"), ("a.YML", "yaml")]
)
def test_detect_format(name: str, fmt: str) -> None:
    assert detect_format(name) == fmt


def test_detect_format_unsupported() -> None:
    with pytest.raises(ValueError, match="Unsupported config format"):
        detect_format("config.toml")


def test_load_config_yaml(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("download:\n  max_file_size_bytes: 1000\n", encoding="utf-8")

    assert load_config(path) == {"download": {"max_file_size_bytes": 1000}}


def test_load_config_empty_yaml_is_empty_dict(tmp_path: Path) -> None:
    path = tmp_path / "config.yml"
    path.write_text("", encoding="utf-8")

    assert load_config(path) == {}


def test_load_config_invalid_yaml(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("download: [unclosed\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid YAML"):
        load_config(path)


def test_load_config_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid JSON"):
        load_config(path)


def test_load_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_load_app_config_from_json(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "store": {"backend": "memory"},
                "google_drive": {"api_key": "from-file", "rate_limit": {"reservoir": 5}},
                "unknown_section": {"ignored": True},
            }
        ),
        encoding="utf-8",
    )

    config = load_app_config(path)

    assert config.store.backend == "memory"
    assert config.google_drive.api_key == "from-file"
    assert config.google_drive.rate_limit.reservoir == 5


def test_load_app_config_defaults_when_missing(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)

    config = load_app_config(tmp_path / "absent.yaml")

    assert config == AppConfig()


def test_load_app_config_reads_api_key_from_env(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("GOOGLE_API_KEY", "env-key")

    config = load_app_config(tmp_path / "absent.yaml")

    assert config.google_drive.api_key == "env-key"


def test_file_api_key_wins_over_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GOOGLE_API_KEY", "env-key")
    path = tmp_path / "config.yaml"
    path.write_text("google_drive:\n  api_key: file-key\n", encoding="utf-8")

    assert load_app_config(path).google_drive.api_key == "file-key"
