"""Google Drive downloader.

Downloads shared Drive files through the Drive v3 API in two steps: a
metadata probe to learn the file name (and size, when reported), then a
streamed ``alt=media`` transfer into the job's working directory. Size and
extension limits are enforced inline while streaming.
"""

from __future__ import annotations

import logging
from contextlib import suppress
from pathlib import Path
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict

from chromaprofiles.core.api.http import (
    ApiError,
    AsyncApiClient,
    AuthError,
    HttpClientConfig,
)
from chromaprofiles.core.config.models import DownloadConfig, GoogleDriveConfig
from chromaprofiles.core.links.models import DownloadOutcome, DownloadStatus, LinkType
from chromaprofiles.core.links.resolver import (
    LinkResolver,
    canonical_google_download_url,
    google_drive_resolver,
)
from chromaprofiles.core.ratelimit import NullRateLimiter, RateLimiter

logger = logging.getLogger(__name__)

QUOTA_STATUS = 403
METADATA_FIELDS = "id,name,size"


class DriveFileMetadata(BaseModel):
    """Subset of the Drive ``files.get`` resource used for downloads."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str | None = None
    name: str | None = None
    size: int | None = None


class DownloadAborted(Exception):
    """Raised inside the streaming loop when a transfer violates a limit."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


def sanitize_filename(name: str) -> str:
    """Reduce a provider-supplied name to a bare filename.

    Returns an empty string when nothing usable remains, or when the name
    carries control characters the filesystem cannot take.
    """
    if any(ord(ch) < 32 or ord(ch) == 127 for ch in name):
        return ""
    base = Path(name.replace("\\", "/")).name.strip()
    if base in {".", ".."}:
        return ""
    return base


def _content_length(headers: httpx.Headers) -> int | None:
    value = headers.get("content-length")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class GoogleDriveDownloader:
    """Downloader for files shared through Google Drive.

    Every call to ``download`` runs inside one slot of the injected rate
    limiter, covering both the metadata probe and the transfer.

    Args:
        http_client: Client whose base URL is the Drive v3 API root
        rate_limiter: Limiter owned by this downloader
        api_key: Drive API key sent as the ``key`` query parameter
        download_config: Size and extension limits
        resolver: URL recognizer (Drive share-link shapes by default)

    Example:
        >>> downloader = GoogleDriveDownloader.from_config(app.google_drive, app.download)
        >>> file_id = downloader.resolve("https://drive.google.com/open?id=ABC123")
        >>> outcome = await downloader.download(file_id, Path("downloads/job-1"))
    """

    link_type = LinkType.GOOGLE

    def __init__(
        self,
        http_client: AsyncApiClient,
        rate_limiter: RateLimiter | NullRateLimiter,
        *,
        api_key: str | None,
        download_config: DownloadConfig | None = None,
        resolver: LinkResolver | None = None,
    ) -> None:
        if not api_key:
            logger.warning("No Google API key configured; Drive requests may be rejected")

        self.http_client = http_client
        self.rate_limiter = rate_limiter
        self.api_key = api_key
        self.download_config = download_config or DownloadConfig()
        self.resolver = resolver or google_drive_resolver()

    @classmethod
    def from_config(
        cls,
        config: GoogleDriveConfig,
        download_config: DownloadConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> GoogleDriveDownloader:
        """Build a downloader with its own HTTP client and rate limiter."""
        http_config = HttpClientConfig(
            base_url=config.api_base_url,
            timeout=httpx.Timeout(download_config.timeout_s),
            user_agent=config.user_agent,
        )
        return cls(
            AsyncApiClient(http_config, transport=transport),
            RateLimiter.from_config(config.rate_limit),
            api_key=config.api_key,
            download_config=download_config,
        )

    async def aclose(self) -> None:
        await self.http_client.aclose()

    async def __aenter__(self) -> GoogleDriveDownloader:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def resolve(self, url: str) -> str | None:
        return self.resolver.resolve(url)

    def _params(self, **extra: str) -> dict[str, str]:
        params = dict(extra)
        if self.api_key:
            params["key"] = self.api_key
        return params

    def _has_accepted_extension(self, filename: str) -> bool:
        suffix = Path(filename).suffix.lower()
        return suffix in {ext.lower() for ext in self.download_config.accepted_extensions}

    async def fetch_metadata(self, file_id: str) -> DriveFileMetadata:
        """Probe Drive for the file's name and size.

        Raises:
            ApiError: If the request fails or the body is not valid metadata
        """
        response = await self.http_client.get(
            f"/files/{quote(file_id, safe='')}",
            params=self._params(fields=METADATA_FIELDS),
        )
        return self.http_client.parse_pydantic(response, DriveFileMetadata)

    async def download(self, identifier: str, working_dir: Path) -> DownloadOutcome:
        """Download a Drive file into ``working_dir`` (rate limited)."""
        async with self.rate_limiter.slot():
            outcome = await self._download(identifier, Path(working_dir))
        logger.info(
            f"Drive download {identifier}: {outcome.status.value}"
            + (f" ({outcome.reason})" if outcome.reason else "")
        )
        return outcome

    async def _download(self, file_id: str, working_dir: Path) -> DownloadOutcome:
        max_bytes = self.download_config.max_file_size_bytes

        # A failed probe means the file is missing or private, never a quota condition.
        try:
            metadata = await self.fetch_metadata(file_id)
        except ApiError as e:
            return DownloadOutcome.failed(self.link_type, f"metadata probe failed: {e.message}")

        filename = sanitize_filename(metadata.name or "")
        if not filename:
            return DownloadOutcome.failed(self.link_type, "metadata has no file name")
        if not self._has_accepted_extension(filename):
            return DownloadOutcome.failed(
                self.link_type, f"unsupported file type: {Path(filename).suffix or filename}"
            )
        if metadata.size is not None and metadata.size > max_bytes:
            logger.info(f"Drive file {file_id} too large ({metadata.size} > {max_bytes} bytes)")
            return DownloadOutcome.failed(self.link_type, "file exceeds size limit")

        working_dir.mkdir(parents=True, exist_ok=True)
        target = working_dir / filename

        try:
            await self._transfer(file_id, target, max_bytes)
        except DownloadAborted as e:
            target.unlink(missing_ok=True)
            return DownloadOutcome.failed(self.link_type, e.reason)
        except AuthError as e:
            target.unlink(missing_ok=True)
            if e.status_code == QUOTA_STATUS:
                logger.warning(f"Drive quota/access error for {file_id}; marking for retry")
                return DownloadOutcome.retry(self.link_type, "provider quota exceeded")
            return DownloadOutcome.failed(self.link_type, f"transfer rejected: {e.message}")
        except ApiError as e:
            target.unlink(missing_ok=True)
            return DownloadOutcome.failed(self.link_type, f"transfer failed: {e.message}")
        except (OSError, ValueError) as e:
            with suppress(OSError, ValueError):
                target.unlink(missing_ok=True)
            return DownloadOutcome.failed(self.link_type, f"could not write file: {e}")

        return DownloadOutcome(
            status=DownloadStatus.OK,
            link_type=self.link_type,
            local_filename=target,
            canonical_download_url=canonical_google_download_url(file_id),
        )

    async def _transfer(self, file_id: str, target: Path, max_bytes: int) -> None:
        async with self.http_client.stream(
            "GET",
            f"/files/{quote(file_id, safe='')}",
            params=self._params(alt="media"),
        ) as response:
            total = _content_length(response.headers)
            if total is not None and total > max_bytes:
                logger.info(f"Download too large: {total} > {max_bytes} bytes")
                raise DownloadAborted("file exceeds size limit")

            received = 0
            with target.open("wb") as fh:
                async for chunk in response.aiter_bytes():
                    received += len(chunk)
                    if received > max_bytes:
                        logger.info(f"Download exceeded {max_bytes} bytes mid-transfer, aborting")
                        raise DownloadAborted("file exceeded size limit during transfer")
                    fh.write(chunk)
