"""Archive extraction with safety checks.

Profile archives (``.ChromaEffects`` and ``.zip``) are plain ZIP containers.
Extraction protects against:
- Path traversal (``../``, absolute paths)
- Decompression bombs (member count, total extracted bytes)
- Platform junk (AppleDouble ``._*`` forks, ``.DS_Store``)
"""

from __future__ import annotations

import logging
import os
import zipfile
import zlib
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)

DEFAULT_MAX_MEMBERS = 2000
DEFAULT_MAX_EXTRACTED_BYTES = 50_000_000
_CHUNK_SIZE = 64 * 1024

_IGNORED_FILENAMES = frozenset({".ds_store", "thumbs.db"})


class ArchiveExtractionError(Exception):
    """Raised when an archive cannot be extracted."""


class CorruptArchiveError(ArchiveExtractionError):
    """Raised when the archive is not a readable ZIP container."""


class PathTraversalError(ArchiveExtractionError):
    """Raised when a member path would escape the output directory."""


class TooManyMembersError(ArchiveExtractionError):
    """Raised when an archive holds more members than allowed."""


class ExtractedSizeLimitError(ArchiveExtractionError):
    """Raised when extracted bytes exceed the limit."""


def _is_ignored_filename(filename: str) -> bool:
    name = filename.strip()
    if not name:
        return True
    if name.lower() in _IGNORED_FILENAMES:
        return True
    # AppleDouble resource forks are never real content.
    return name.startswith("._")


def is_path_safe(member_path: str, dest_dir: Path) -> tuple[bool, str | None]:
    """Check whether a member path stays inside ``dest_dir``.

    Returns:
        Tuple of (is_safe, error_reason)
    """
    normalized = os.path.normpath(member_path.replace("\\", "/"))

    if normalized in {"", "."}:
        return False, f"empty_path:{member_path}"
    if os.path.isabs(normalized) or normalized.startswith("/"):
        return False, f"absolute_path:{member_path}"
    if normalized == ".." or normalized.startswith("../") or "/../" in normalized:
        return False, f"path_traversal:{member_path}"

    try:
        final_path = (dest_dir / normalized).resolve()
        final_path.relative_to(dest_dir.resolve())
    except ValueError:
        return False, f"escapes_dest:{member_path}"
    except OSError as e:
        return False, f"path_resolution_error:{member_path}:{e}"

    return True, None


def safe_extract_zip(
    archive_path: Path,
    dest_dir: Path,
    *,
    max_members: int = DEFAULT_MAX_MEMBERS,
    max_extracted_bytes: int = DEFAULT_MAX_EXTRACTED_BYTES,
    strict_paths: bool = False,
) -> list[str]:
    """Extract a ZIP archive, returning member paths relative to ``dest_dir``.

    Directory entries and ignored junk files are not reported. Unsafe member
    paths are skipped, or raise ``PathTraversalError`` when ``strict_paths``
    is set. Members that normalize to an already extracted path are skipped,
    so the first one wins.

    Args:
        archive_path: Path to the archive
        dest_dir: Output directory (created if missing)
        max_members: Maximum number of archive entries
        max_extracted_bytes: Maximum bytes written across all members
        strict_paths: Raise instead of skipping unsafe member paths

    Returns:
        POSIX-style relative paths of the extracted files, in archive order

    Raises:
        ArchiveExtractionError: If the archive is corrupt or breaks a limit
    """
    dest_dir = Path(dest_dir)
    dest_dir.mkdir(parents=True, exist_ok=True)
    extracted: list[str] = []
    seen: set[str] = set()
    written = 0

    try:
        with zipfile.ZipFile(archive_path, "r") as zf:
            members = zf.infolist()
            if len(members) > max_members:
                raise TooManyMembersError(
                    f"Archive contains {len(members)} entries, exceeds limit of {max_members}"
                )

            declared = sum(m.file_size for m in members)
            if declared > max_extracted_bytes:
                raise ExtractedSizeLimitError(
                    f"Declared size {declared} exceeds limit {max_extracted_bytes}"
                )

            for member in members:
                if member.is_dir():
                    continue
                if _is_ignored_filename(PurePosixPath(member.filename).name):
                    continue

                is_safe, reason = is_path_safe(member.filename, dest_dir)
                if not is_safe:
                    if strict_paths:
                        raise PathTraversalError(f"Unsafe path in archive: {reason}")
                    logger.warning(f"Skipping unsafe archive member: {reason}")
                    continue

                relative = PurePosixPath(os.path.normpath(member.filename.replace("\\", "/")))
                if relative.as_posix() in seen:
                    logger.warning(f"Skipping duplicate archive member: {member.filename}")
                    continue
                seen.add(relative.as_posix())

                target = dest_dir.joinpath(*relative.parts)
                target.parent.mkdir(parents=True, exist_ok=True)

                # Count real bytes, member headers can under-report.
                with zf.open(member) as src, target.open("wb") as dst:
                    while chunk := src.read(_CHUNK_SIZE):
                        written += len(chunk)
                        if written > max_extracted_bytes:
                            raise ExtractedSizeLimitError(
                                f"Extracted size exceeds limit {max_extracted_bytes}"
                            )
                        dst.write(chunk)

                extracted.append(relative.as_posix())
    except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError, RuntimeError) as e:
        raise CorruptArchiveError(f"Cannot read archive {archive_path.name}: {e}") from e

    return extracted


class ArchiveExtractor:
    """Unpacks downloaded archives, reporting failures as an empty result.

    Callers treat "no members" the same as "extraction failed".

    Example:
        >>> members = ArchiveExtractor().extract(Path("job/profile.zip"), Path("job/x"))
        >>> members
        ['profile.ChromaEffects_1/Lighting.xml']
    """

    def __init__(
        self,
        max_members: int = DEFAULT_MAX_MEMBERS,
        max_extracted_bytes: int = DEFAULT_MAX_EXTRACTED_BYTES,
    ) -> None:
        self.max_members = max_members
        self.max_extracted_bytes = max_extracted_bytes

    def extract(self, archive_path: Path, output_dir: Path) -> list[str]:
        """Extract ``archive_path`` into ``output_dir``.

        Returns:
            Relative member paths, or an empty list on any extraction error
        """
        archive_path = Path(archive_path)
        try:
            members = safe_extract_zip(
                archive_path,
                Path(output_dir),
                max_members=self.max_members,
                max_extracted_bytes=self.max_extracted_bytes,
            )
        except ArchiveExtractionError as e:
            logger.warning(f"Extraction failed for {archive_path.name}: {e}")
            return []
        except OSError as e:
            logger.warning(f"Filesystem error extracting {archive_path.name}: {e}")
            return []

        logger.info(f"Extracted {len(members)} member(s) from {archive_path.name}")
        return members
