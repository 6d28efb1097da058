"""Provider plugin chain."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from chromaprofiles.core.downloaders.protocols import Downloader
from chromaprofiles.core.links.models import DownloadOutcome, DownloadStatus

logger = logging.getLogger(__name__)


async def download_with_chain(
    url: str, downloaders: Sequence[Downloader], working_dir: Path
) -> DownloadOutcome | None:
    """Try each downloader that recognizes ``url``, in priority order.

    Each downloader writes into its own subdirectory of ``working_dir``.
    The first ``OK`` outcome wins immediately. A ``RETRY`` outcome replaces
    whatever was collected before it; otherwise the first outcome is kept.

    Returns:
        The selected outcome, or None when no downloader supports ``url``.
    """
    selected: DownloadOutcome | None = None

    for downloader in downloaders:
        identifier = downloader.resolve(url)
        if identifier is None:
            continue

        provider_dir = Path(working_dir) / downloader.link_type.value.lower()
        outcome = await downloader.download(identifier, provider_dir)

        if outcome.status == DownloadStatus.OK:
            return outcome
        if selected is None or outcome.status == DownloadStatus.RETRY:
            selected = outcome
        logger.debug(
            f"{downloader.link_type.value} returned {outcome.status.value} for {url}, "
            "trying next provider"
        )

    if selected is None:
        logger.debug(f"No downloader supports {url}")
    return selected
