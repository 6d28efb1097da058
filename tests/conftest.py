"""Shared pytest fixtures for chromaprofiles tests."""

from __future__ import annotations

import io
from collections.abc import Callable, Iterable
from pathlib import Path
from zipfile import ZipFile

import pytest

from chromaprofiles.core.archives.lifecycle import FileLifecycleManager
from chromaprofiles.core.links.models import DownloadOutcome, DownloadStatus, LinkType
from chromaprofiles.core.links.resolver import (
    canonical_google_download_url,
    google_drive_resolver,
)

# ============================================================================
# Async backend
# ============================================================================


@pytest.fixture
def anyio_backend() -> str:
    """Run anyio-marked tests on asyncio only."""
    return "asyncio"


# ============================================================================
# Lighting XML / archive builders
# ============================================================================


def build_lighting_xml(
    name: str = "MyProfile",
    devices: Iterable[str] = ("Keyboard", "Mouse"),
    colours: Iterable[tuple[int, int, int]] = ((255, 0, 16), (0, 0, 0), (255, 255, 255)),
    effects: Iterable[str] = ("wave", "none", "static"),
) -> str:
    """Render a lighting configuration document."""
    device_xml = "".join(f"<Device><Name>{d}</Name></Device>" for d in devices)
    colour_xml = "".join(
        f"<RzColor><Red>{r}</Red><Green>{g}</Green><Blue>{b}</Blue></RzColor>"
        for r, g, b in colours
    )
    effect_xml = "".join(f"<EffectLayer><Effect>{e}</Effect></EffectLayer>" for e in effects)
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        "<LightingEffects>"
        f"<Name>{name}</Name>"
        f"<Devices>{device_xml}</Devices>"
        f"<Colors>{colour_xml}</Colors>"
        f"<EffectLayers>{effect_xml}</EffectLayers>"
        "</LightingEffects>"
    )


def zip_bytes(members: dict[str, bytes | str]) -> bytes:
    """Build an in-memory ZIP archive."""
    buffer = io.BytesIO()
    with ZipFile(buffer, "w") as archive:
        for name, data in members.items():
            archive.writestr(name, data)
    return buffer.getvalue()


@pytest.fixture
def make_lighting_xml() -> Callable[..., str]:
    return build_lighting_xml


@pytest.fixture
def make_zip() -> Callable[[dict[str, bytes | str]], bytes]:
    return zip_bytes


@pytest.fixture
def lighting_xml() -> str:
    """Lighting document with 2 devices, 3 colours and name MyProfile."""
    return build_lighting_xml()


@pytest.fixture
def profile_archive(lighting_xml: str) -> bytes:
    """A ``.ChromaEffects`` archive holding one lighting member."""
    return zip_bytes({"profile.ChromaEffects_1/Lighting.xml": lighting_xml})


@pytest.fixture
def lifecycle(tmp_path: Path) -> FileLifecycleManager:
    """Lifecycle manager over temporary download/archive directories."""
    return FileLifecycleManager(tmp_path / "downloads", tmp_path / "profile-archives")


# ============================================================================
# Fake downloader
# ============================================================================


class FakeDownloader:
    """In-process downloader recognizing Google Drive links.

    Writes ``payload`` into the working directory on success, or reports the
    configured status without touching the filesystem.
    """

    link_type = LinkType.GOOGLE

    def __init__(
        self,
        *,
        payload: bytes = b"",
        filename: str = "profile.ChromaEffects",
        status: DownloadStatus = DownloadStatus.OK,
        error: Exception | None = None,
    ) -> None:
        self.payload = payload
        self.filename = filename
        self.status = status
        self.error = error
        self.resolver = google_drive_resolver()
        self.calls: list[tuple[str, Path]] = []

    def resolve(self, url: str) -> str | None:
        return self.resolver.resolve(url)

    async def download(self, identifier: str, working_dir: Path) -> DownloadOutcome:
        self.calls.append((identifier, working_dir))
        if self.error is not None:
            raise self.error
        if self.status != DownloadStatus.OK:
            return DownloadOutcome(status=self.status, link_type=self.link_type, reason="fake")

        working_dir.mkdir(parents=True, exist_ok=True)
        target = working_dir / self.filename
        target.write_bytes(self.payload)
        return DownloadOutcome(
            status=DownloadStatus.OK,
            link_type=self.link_type,
            local_filename=target,
            canonical_download_url=canonical_google_download_url(identifier),
        )


@pytest.fixture
def make_fake_downloader() -> Callable[..., FakeDownloader]:
    """Factory for ``FakeDownloader`` instances."""
    return FakeDownloader
