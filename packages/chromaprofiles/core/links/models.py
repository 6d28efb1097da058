"""Records that flow through link analysis.

A ``CandidateLink`` is produced upstream (comment-link discovery), updated
by the analyzer once per invocation, and persisted by a store. A
``ProfileStub`` is only built when at least one usable ``LightingEffect``
was extracted from the link's archive.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

NONE_EFFECT = "none"

_HEX_COLOUR = re.compile(r"^#[0-9a-f]{6}$")


class LinkStatus(str, Enum):
    """Analysis status of a candidate link."""

    NEW = "NEW"
    RETRY = "RETRY"
    FAILED = "FAILED"
    RETRY_FAILED = "RETRY_FAILED"
    OK = "OK"
    UNSUPPORTED = "UNSUPPORTED"

    @property
    def is_terminal(self) -> bool:
        """True when no further analysis attempts are made."""
        return self not in PENDING_STATUSES


PENDING_STATUSES: frozenset[LinkStatus] = frozenset({LinkStatus.NEW, LinkStatus.RETRY})


class LinkType(str, Enum):
    """Provider that serviced a link (``NEW`` when none did)."""

    NEW = "NEW"
    GOOGLE = "GOOGLE"


class DownloadStatus(str, Enum):
    """Outcome class reported by a downloader."""

    OK = "OK"
    RETRY = "RETRY"
    FAILED = "FAILED"


def _unique(values: Iterable[str]) -> list[str]:
    """Deduplicate keeping first-seen order."""
    return list(dict.fromkeys(values))


class CandidateLink(BaseModel):
    """A URL discovered in a post's comments, tracked through analysis."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: int | None = Field(default=None, description="Store identity (None until persisted)")
    parent_post_id: str = Field(min_length=1)
    original_url: str
    link_type: LinkType = LinkType.NEW
    link_status: LinkStatus = LinkStatus.NEW

    @property
    def is_pending(self) -> bool:
        return self.link_status in PENDING_STATUSES


class DownloadOutcome(BaseModel):
    """Transient result of one downloader invocation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    status: DownloadStatus
    link_type: LinkType
    local_filename: Path | None = None
    canonical_download_url: str | None = None
    reason: str | None = Field(default=None, description="Why the download did not succeed")

    @classmethod
    def failed(cls, link_type: LinkType, reason: str) -> DownloadOutcome:
        return cls(status=DownloadStatus.FAILED, link_type=link_type, reason=reason)

    @classmethod
    def retry(cls, link_type: LinkType, reason: str) -> DownloadOutcome:
        return cls(status=DownloadStatus.RETRY, link_type=link_type, reason=reason)


class LightingEffect(BaseModel):
    """One parsed lighting configuration.

    Device, colour and effect lists are deduplicated on construction and the
    ``none`` effect sentinel is dropped.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = ""
    devices: list[str] = Field(default_factory=list)
    colours: list[str] = Field(default_factory=list)
    effects: list[str] = Field(default_factory=list)

    @field_validator("devices")
    @classmethod
    def unique_devices(cls, v: list[str]) -> list[str]:
        return _unique(v)

    @field_validator("colours")
    @classmethod
    def unique_colours(cls, v: list[str]) -> list[str]:
        """Normalize to lowercase ``#rrggbb`` and deduplicate."""
        normalized = [c.lower() for c in v]
        for colour in normalized:
            if not _HEX_COLOUR.match(colour):
                raise ValueError(f"Colour must be '#rrggbb', got {colour!r}")
        return _unique(normalized)

    @field_validator("effects")
    @classmethod
    def unique_effects(cls, v: list[str]) -> list[str]:
        return _unique(e for e in v if e != NONE_EFFECT)

    @property
    def is_usable(self) -> bool:
        """A lighting effect counts only with at least one device and colour."""
        return bool(self.devices) and bool(self.colours)


class ProfileStub(BaseModel):
    """Profile record awaiting enrichment with parent-post metadata."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    origin_link_id: int | None
    parent_post_id: str
    canonical_download_url: str
    lighting_effects: list[LightingEffect] = Field(min_length=1)


class LinkAnalysisResult(BaseModel):
    """Updated link plus the profile found for it, if any.

    ``profile`` is None when no usable lighting effect was extracted; such
    results must not be persisted as profiles.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    link: CandidateLink
    profile: ProfileStub | None = None


def candidate_links_from_post(post_id: str, urls: Iterable[str]) -> list[CandidateLink]:
    """Build ``NEW`` candidate links for the URLs found in one post.

    Blank entries are skipped and repeated URLs collapse to one link.

    Example:
        >>> links = candidate_links_from_post("t3_abc", ["https://a", "https://a"])
        >>> len(links)
        1
    """
    cleaned = _unique(u.strip() for u in urls if u and u.strip())
    return [CandidateLink(parent_post_id=post_id, original_url=url) for url in cleaned]
