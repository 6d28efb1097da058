"""Sequential batch driver for pending links."""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict

from chromaprofiles.core.links.analyzer import LinkAnalyzer
from chromaprofiles.core.links.models import LinkStatus
from chromaprofiles.core.store.protocols import LinkStoreSync

logger = logging.getLogger(__name__)


class BatchReport(BaseModel):
    """Counts reported after one batch.

    Attributes:
        processed: Links analyzed in this batch
        analyzed: Links whose archive produced a profile stub
        imported: Profile stubs accepted by the store
        halted: True when the batch stopped early on a ``RETRY`` status
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    processed: int = 0
    analyzed: int = 0
    imported: int = 0
    halted: bool = False


async def analyze_pending_links(store: LinkStoreSync, analyzer: LinkAnalyzer) -> BatchReport:
    """Analyze every pending link in order, one at a time.

    Each link is written back to the store as soon as it is analyzed. The
    batch stops right after a link ends in ``RETRY``, since provider quota
    errors usually affect the links that follow too. ``RETRY_FAILED`` does
    not stop the batch.
    """
    links = store.pending_links()
    logger.info(f"Starting batch over {len(links)} pending link(s)")

    processed = analyzed = imported = 0
    halted = False

    for link in links:
        result = await analyzer.analyze(link)
        store.update_link(result.link)
        processed += 1

        if result.profile is not None:
            analyzed += 1
            if store.insert_profile(result.profile):
                imported += 1
            else:
                logger.info(
                    f"Profile for post {result.profile.parent_post_id} already exists, skipped"
                )

        if result.link.link_status == LinkStatus.RETRY:
            logger.warning(
                f"Provider asked to retry {link.original_url}; halting batch after "
                f"{processed} of {len(links)} link(s)"
            )
            halted = True
            break

    report = BatchReport(processed=processed, analyzed=analyzed, imported=imported, halted=halted)
    logger.info(
        f"Batch finished: processed={report.processed} analyzed={report.analyzed} "
        f"imported={report.imported} halted={report.halted}"
    )
    return report
