"""Tests for provider URL recognition."""

from __future__ import annotations

import pytest

from chromaprofiles.core.links.resolver import (
    LinkResolver,
    canonical_google_download_url,
    canonicalize_link,
    google_drive_resolver,
)


@pytest.mark.parametrize(
    "url",
    [
        "https://drive.google.com/file/d/ABC123/view",
        "https://drive.google.com/file/d/ABC123/view?usp=sharing",
        "https://drive.google.com/open?id=ABC123",
        "https://drive.google.com/open?id=ABC123&authuser=0",
        "https://drive.google.com/uc?id=ABC123&export=download",
        "HTTPS://DRIVE.GOOGLE.COM/file/d/ABC123/view",
        "see https://drive.google.com/file/d/ABC123/view for the profile",
    ],
)
def test_google_drive_shapes_resolve(url: str) -> None:
    assert google_drive_resolver().resolve(url) == "ABC123"


@pytest.mark.parametrize(
    "url",
    [
        "https://example.com/profile.zip",
        "https://drive.google.com/drive/folders/XYZ",
        "https://drive.google.com/file/d//view",
        "",
        None,
        42,
    ],
)
def test_unrecognized_input_resolves_to_none(url: object) -> None:
    resolver = google_drive_resolver()
    assert resolver.resolve(url) is None


def test_custom_patterns_checked_in_order() -> None:
    resolver = LinkResolver([r"https://a\.test/(\w+)", r"https://a\.test/x/(\w+)"])
    assert resolver.resolve("https://a.test/x/y") == "x"


def test_canonical_download_url() -> None:
    assert (
        canonical_google_download_url("ABC123")
        == "https://drive.google.com/uc?id=ABC123&export=download"
    )


def test_canonicalize_link() -> None:
    canonical = "https://drive.google.com/uc?id=ABC123&export=download"
    assert canonicalize_link("https://drive.google.com/open?id=ABC123") == canonical
    assert canonicalize_link(canonical) == canonical
    assert canonicalize_link("https://example.com/a.zip") == "https://example.com/a.zip"
