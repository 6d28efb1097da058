"""Archive extraction and downloaded-file lifecycle."""

from chromaprofiles.core.archives.extractor import (
    ArchiveExtractionError,
    ArchiveExtractor,
    CorruptArchiveError,
    ExtractedSizeLimitError,
    PathTraversalError,
    TooManyMembersError,
    safe_extract_zip,
)
from chromaprofiles.core.archives.lifecycle import FileLifecycleManager

__all__ = [
    "ArchiveExtractor",
    "FileLifecycleManager",
    "safe_extract_zip",
    "ArchiveExtractionError",
    "CorruptArchiveError",
    "PathTraversalError",
    "TooManyMembersError",
    "ExtractedSizeLimitError",
]
