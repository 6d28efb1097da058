"""Ownership of downloaded and extracted files.

Archives that produced a profile are moved to a permanent directory;
everything else is deleted. Filesystem problems are logged and reported
through return values, never raised to the caller.
"""

from __future__ import annotations

import logging
import shutil
import uuid
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)


class FileLifecycleManager:
    """Archive or discard files produced by link analysis.

    Args:
        download_dir: Root of transient per-job working directories
        archive_dir: Permanent home for archives that yielded a profile
    """

    def __init__(self, download_dir: Path, archive_dir: Path) -> None:
        self.download_dir = Path(download_dir)
        self.archive_dir = Path(archive_dir)

    def archive(self, path: Path) -> Path | None:
        """Move ``path`` into the archive directory.

        An existing file with the same name is left untouched.

        Returns:
            Destination path, or None if the file was not moved
        """
        path = Path(path)
        destination = self.archive_dir / path.name
        if destination.exists():
            logger.info(f"Archive already holds {path.name}, keeping existing copy")
            return None
        try:
            self.archive_dir.mkdir(parents=True, exist_ok=True)
            shutil.move(str(path), str(destination))
        except OSError as e:
            logger.warning(f"Could not archive {path}: {e}")
            return None
        logger.info(f"Archived {path.name} to {self.archive_dir}")
        return destination

    def discard(self, path: Path) -> bool:
        """Delete ``path``; a file that is already gone counts as discarded."""
        path = Path(path)
        try:
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not delete {path}: {e}")
            return False
        logger.debug(f"Deleted {path}")
        return True

    def discard_all(self, paths: Iterable[Path]) -> int:
        """Delete every path, returning how many were removed."""
        return sum(1 for p in paths if self.discard(p))

    @contextmanager
    def job_directory(self, prefix: str = "job") -> Iterator[Path]:
        """Create a unique working directory removed on exit.

        Anything left inside (partial downloads, extracted members,
        archives that were not moved) is deleted with it.
        """
        job_dir = self.download_dir / f"{prefix}-{uuid.uuid4().hex[:12]}"
        job_dir.mkdir(parents=True, exist_ok=False)
        try:
            yield job_dir
        finally:
            self.discard(job_dir)
