"""Link analysis state machine.

Drives one candidate link through resolution, rate-limited download,
extraction and XML parsing, and returns the updated link together with a
profile stub when the archive held at least one usable lighting effect.

Status transitions:

==================  ==================  ================
previous status     download outcome    next status
==================  ==================  ================
any                 (unsupported URL)   UNSUPPORTED
any                 FAILED              FAILED
any                 OK                  OK
RETRY               RETRY               RETRY_FAILED
NEW                 RETRY               RETRY
==================  ==================  ================

A successful download whose archive yields no usable lighting effect keeps
the ``OK`` status but produces no profile.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from chromaprofiles.core.archives.extractor import ArchiveExtractor
from chromaprofiles.core.archives.lifecycle import FileLifecycleManager
from chromaprofiles.core.downloaders.chain import download_with_chain
from chromaprofiles.core.downloaders.protocols import Downloader
from chromaprofiles.core.links.models import (
    CandidateLink,
    DownloadOutcome,
    DownloadStatus,
    LightingEffect,
    LinkAnalysisResult,
    LinkStatus,
    LinkType,
    ProfileStub,
)
from chromaprofiles.core.parsers.lighting import LightingProfileParser, ProfileParseError
from chromaprofiles.core.utils.logging import get_logger

logger = logging.getLogger(__name__)

EXTRACT_DIRNAME = "extracted"


def next_link_status(previous: LinkStatus, outcome: DownloadStatus) -> LinkStatus:
    """Compute a link's status after one download attempt.

    A second consecutive ``RETRY`` is terminal.

    Example:
        >>> next_link_status(LinkStatus.RETRY, DownloadStatus.RETRY)
        <LinkStatus.RETRY_FAILED: 'RETRY_FAILED'>
    """
    if outcome == DownloadStatus.RETRY:
        return LinkStatus.RETRY_FAILED if previous == LinkStatus.RETRY else LinkStatus.RETRY
    if outcome == DownloadStatus.OK:
        return LinkStatus.OK
    return LinkStatus.FAILED


class LinkAnalyzer:
    """Analyze candidate links into updated links and profile stubs.

    ``analyze`` never raises: every internal failure is downgraded to a link
    status. Each invocation works in its own job directory, removed when the
    invocation ends.

    Args:
        downloaders: Providers in priority order
        lifecycle: Owner of working and archive directories
        extractor: Archive extractor (default limits when omitted)
        parser: Lighting XML parser
        member_suffix: Suffix of archive members worth parsing (case-insensitive)

    Example:
        >>> analyzer = LinkAnalyzer([drive], FileLifecycleManager(dl_dir, archive_dir))
        >>> result = await analyzer.analyze(link)
        >>> result.link.link_status, result.profile is not None
        (<LinkStatus.OK: 'OK'>, True)
    """

    def __init__(
        self,
        downloaders: Sequence[Downloader],
        lifecycle: FileLifecycleManager,
        *,
        extractor: ArchiveExtractor | None = None,
        parser: LightingProfileParser | None = None,
        member_suffix: str = ".xml",
    ) -> None:
        self.downloaders = list(downloaders)
        self.lifecycle = lifecycle
        self.extractor = extractor or ArchiveExtractor()
        self.parser = parser or LightingProfileParser()
        self.member_suffix = member_suffix.lower()

    async def analyze(self, link: CandidateLink) -> LinkAnalysisResult:
        """Run one link through the pipeline and return its updated state."""
        log = get_logger(__name__, link_id=link.id, url=link.original_url)
        log.info(f"Analyzing link {link.original_url} (status {link.link_status.value})")

        try:
            result = await self._analyze(link, log)
        except Exception:
            log.exception(f"Unexpected error analyzing {link.original_url}")
            result = LinkAnalysisResult(
                link=link.model_copy(update={"link_status": LinkStatus.FAILED})
            )

        log.info(
            f"Link {link.original_url} -> {result.link.link_status.value}"
            + (
                f", {len(result.profile.lighting_effects)} lighting effect(s)"
                if result.profile
                else ", no profile"
            )
        )
        return result

    async def _analyze(
        self, link: CandidateLink, log: logging.Logger | logging.LoggerAdapter
    ) -> LinkAnalysisResult:
        with self.lifecycle.job_directory() as job_dir:
            outcome = await self._download(link, job_dir, log)

            if outcome is None:
                return LinkAnalysisResult(
                    link=link.model_copy(
                        update={"link_type": LinkType.NEW, "link_status": LinkStatus.UNSUPPORTED}
                    )
                )

            updated = link.model_copy(
                update={
                    "link_type": outcome.link_type,
                    "link_status": next_link_status(link.link_status, outcome.status),
                }
            )
            if outcome.status != DownloadStatus.OK or outcome.local_filename is None:
                return LinkAnalysisResult(link=updated)

            archive_path = outcome.local_filename
            effects = self.analyze_archive(archive_path, job_dir)

            if not effects:
                self.lifecycle.discard(archive_path)
                return LinkAnalysisResult(link=updated)

            self.lifecycle.archive(archive_path)
            profile = ProfileStub(
                origin_link_id=link.id,
                parent_post_id=link.parent_post_id,
                canonical_download_url=outcome.canonical_download_url or link.original_url,
                lighting_effects=effects,
            )
            return LinkAnalysisResult(link=updated, profile=profile)

    async def _download(
        self,
        link: CandidateLink,
        job_dir: Path,
        log: logging.Logger | logging.LoggerAdapter,
    ) -> DownloadOutcome | None:
        try:
            return await download_with_chain(link.original_url, self.downloaders, job_dir)
        except Exception as e:
            log.exception(f"Downloader raised for {link.original_url}")
            return DownloadOutcome.failed(link.link_type, f"downloader error: {e}")

    def analyze_archive(self, archive_path: Path, job_dir: Path) -> list[LightingEffect]:
        """Extract an archive and parse its lighting members.

        Members without the configured suffix are skipped. Extracted files
        are deleted before returning, whatever the result.

        Returns:
            Usable lighting effects found across all members
        """
        extract_dir = Path(job_dir) / EXTRACT_DIRNAME
        members = self.extractor.extract(Path(archive_path), extract_dir)
        effects: list[LightingEffect] = []

        try:
            for member in members:
                if not member.lower().endswith(self.member_suffix):
                    logger.debug(f"Skipping non-{self.member_suffix} member {member}")
                    continue
                try:
                    parsed = self.parser.parse(extract_dir / member)
                except (ProfileParseError, OSError) as e:
                    logger.warning(f"Unreadable lighting file {member}: {e}")
                    continue
                if parsed.is_usable:
                    effects.append(parsed.to_lighting_effect())
                else:
                    logger.info(f"{member} has no devices or colours, ignoring")
        finally:
            self.lifecycle.discard_all(extract_dir / m for m in members)
            self.lifecycle.discard(extract_dir)

        return effects
