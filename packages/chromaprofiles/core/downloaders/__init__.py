"""File-host downloaders and the provider chain."""

from chromaprofiles.core.downloaders.chain import download_with_chain
from chromaprofiles.core.downloaders.google_drive import (
    DownloadAborted,
    DriveFileMetadata,
    GoogleDriveDownloader,
)
from chromaprofiles.core.downloaders.protocols import Downloader

__all__ = [
    "Downloader",
    "GoogleDriveDownloader",
    "DriveFileMetadata",
    "DownloadAborted",
    "download_with_chain",
]
