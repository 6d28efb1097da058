"""URL recognition for file-hosting providers.

A resolver turns a raw URL into a provider file identifier without any
network I/O. Unrecognized or malformed input resolves to ``None``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from typing import Any

logger = logging.getLogger(__name__)

GOOGLE_DRIVE_PATTERNS: tuple[str, ...] = (
    r"https://drive\.google\.com/file/d/([^/?#]+)/view",
    r"https://drive\.google\.com/open\?id=([^&#\s]+)",
    r"https://drive\.google\.com/uc\?id=([^&#\s]+)&export=download",
)

GOOGLE_DOWNLOAD_URL = "https://drive.google.com/uc?id={file_id}&export=download"


class LinkResolver:
    """Ordered set of provider URL recognizers.

    Each pattern must capture the file identifier in its first group.

    Example:
        >>> resolver = LinkResolver(GOOGLE_DRIVE_PATTERNS)
        >>> resolver.resolve("https://drive.google.com/file/d/ABC123/view")
        'ABC123'
        >>> resolver.resolve("https://example.com/x.zip") is None
        True
    """

    def __init__(self, patterns: Iterable[str | re.Pattern[str]]) -> None:
        self._patterns: Sequence[re.Pattern[str]] = tuple(
            p if isinstance(p, re.Pattern) else re.compile(p, re.IGNORECASE) for p in patterns
        )

    def resolve(self, url: Any) -> str | None:
        """Return the first non-empty identifier captured, or None."""
        if not isinstance(url, str) or not url:
            return None
        for pattern in self._patterns:
            match = pattern.search(url)
            if match and match.group(1):
                return match.group(1)
        return None


def google_drive_resolver() -> LinkResolver:
    """Resolver for the three Google Drive share-link shapes."""
    return LinkResolver(GOOGLE_DRIVE_PATTERNS)


def canonical_google_download_url(file_id: str) -> str:
    """Build the stable, user-facing download URL for a Drive file."""
    return GOOGLE_DOWNLOAD_URL.format(file_id=file_id)


def canonicalize_link(url: str, resolver: LinkResolver | None = None) -> str:
    """Rewrite a recognized Drive link into its canonical download form.

    Unrecognized links are returned unchanged.
    """
    file_id = (resolver or google_drive_resolver()).resolve(url)
    if file_id is None:
        return url
    canonical = canonical_google_download_url(file_id)
    if canonical != url:
        logger.debug(f"Canonicalized {url} -> {canonical}")
    return canonical
