"""Candidate link records and URL resolution."""

from chromaprofiles.core.links.models import (
    PENDING_STATUSES,
    CandidateLink,
    DownloadOutcome,
    DownloadStatus,
    LightingEffect,
    LinkAnalysisResult,
    LinkStatus,
    LinkType,
    ProfileStub,
    candidate_links_from_post,
)
from chromaprofiles.core.links.resolver import (
    GOOGLE_DRIVE_PATTERNS,
    LinkResolver,
    canonical_google_download_url,
    canonicalize_link,
    google_drive_resolver,
)

__all__ = [
    # Models
    "CandidateLink",
    "DownloadOutcome",
    "DownloadStatus",
    "LightingEffect",
    "LinkAnalysisResult",
    "LinkStatus",
    "LinkType",
    "ProfileStub",
    "PENDING_STATUSES",
    "candidate_links_from_post",
    # Resolution
    "LinkResolver",
    "GOOGLE_DRIVE_PATTERNS",
    "google_drive_resolver",
    "canonical_google_download_url",
    "canonicalize_link",
]
