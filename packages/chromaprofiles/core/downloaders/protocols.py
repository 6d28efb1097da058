"""Downloader provider protocol.

Every file-hosting provider plugs into link analysis by satisfying
``Downloader``. The protocol is ``@runtime_checkable`` so callers can guard
with ``isinstance(obj, Downloader)``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from chromaprofiles.core.links.models import DownloadOutcome, LinkType


@runtime_checkable
class Downloader(Protocol):
    """Provider download contract.

    ``resolve`` is pure and never raises. ``download`` never raises either:
    every failure is reported through ``DownloadOutcome.status``.
    """

    link_type: LinkType

    def resolve(self, url: str) -> str | None:
        """Return the provider file identifier for ``url``, or None if unsupported."""
        ...

    async def download(self, identifier: str, working_dir: Path) -> DownloadOutcome:
        """Fetch the file into ``working_dir``.

        Args:
            identifier: Provider file identifier returned by ``resolve``.
            working_dir: Per-job directory the file is written into.

        Returns:
            ``OK`` with ``local_filename`` set, ``RETRY`` for provider-side
            quota errors, ``FAILED`` otherwise. No partial file is left behind
            unless the status is ``OK``.
        """
        ...
