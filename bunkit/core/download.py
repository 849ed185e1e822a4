"""
Release asset URLs and streaming downloads.

This module provides:
- Download URL construction for a (version, variant) pair
- HTTP/HTTPS streaming download to a local path
- Progress reporting (bytes, percentage, speed, ETA)

There is deliberately no retry loop here; a failed download surfaces as
DownloadFailure and the caller decides whether to try again.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import requests
from requests.exceptions import RequestException

from bunkit.core.exceptions import DownloadFailure
from bunkit.core.platform import BunSystem
from bunkit.core.version import is_latest, normalize_version, release_tag

logger = logging.getLogger(__name__)

BUN_RELEASES_URL = "https://github.com/oven-sh/bun/releases"
CHUNK_SIZE = 64 * 1024


@dataclass
class DownloadProgress:
    """Progress information for a download."""

    bytes_downloaded: int
    total_bytes: int
    percentage: float
    speed_bps: float  # bytes per second
    eta_seconds: float  # estimated time remaining

    def __str__(self) -> str:
        """Format progress for display."""
        return format_progress(self)


def release_file_url(
    version: Optional[str], file_name: str, base_url: str = BUN_RELEASES_URL
) -> str:
    """
    Build the download URL of a file attached to a Bun release.

    Example:
        >>> release_file_url("1.1.0", "SHASUMS256.txt")
        'https://github.com/oven-sh/bun/releases/download/bun-v1.1.0/SHASUMS256.txt'
    """
    base_url = base_url.rstrip("/")
    if is_latest(version):
        return f"{base_url}/latest/download/{file_name}"
    tag = release_tag(normalize_version(version))
    return f"{base_url}/download/{tag}/{file_name}"


def asset_url(
    version: Optional[str], system: BunSystem, base_url: str = BUN_RELEASES_URL
) -> str:
    """
    Build the download URL of a Bun release asset.

    Args:
        version: Bun version or "latest" (normalized first)
        system: Target variant
        base_url: Releases base URL (override for mirrors)

    Returns:
        Asset download URL

    Example:
        >>> asset_url("1.1.0", BunSystem.LINUX_X64)
        'https://github.com/oven-sh/bun/releases/download/bun-v1.1.0/bun-linux-x64.zip'
    """
    return release_file_url(version, system.zip_name, base_url)


def download_file(
    url: str,
    destination: Path,
    timeout: int = 30,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
) -> Path:
    """
    Stream a URL to a local file, overwriting any existing file.

    Args:
        url: URL to download from
        destination: Local path to save file (parents are created)
        timeout: Request timeout in seconds
        progress_callback: Optional callback for progress updates

    Returns:
        Path to downloaded file

    Raises:
        DownloadFailure: On any network or filesystem error
        ValueError: If URL or destination is empty
    """
    if not url:
        raise ValueError("URL cannot be empty")

    if not destination:
        raise ValueError("Destination path cannot be empty")

    destination = Path(destination)

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        return _download_with_progress(url, destination, progress_callback, timeout)
    except (RequestException, OSError) as e:
        logger.error(f"Error during download: {e}")
        # A truncated asset must never be mistaken for a complete one
        if destination.exists():
            try:
                destination.unlink()
            except OSError as cleanup_error:
                logger.debug(f"Could not remove partial download: {cleanup_error}")
        raise DownloadFailure(url, destination, str(e)) from e


def _download_with_progress(
    url: str,
    destination: Path,
    progress_callback: Optional[Callable[[DownloadProgress], None]],
    timeout: int,
) -> Path:
    """
    Perform download with streaming and progress updates.

    Raises:
        RequestException: If HTTP request fails
        OSError: If the destination cannot be written
    """
    logger.debug(f"GET {url}")

    with requests.get(
        url, stream=True, timeout=timeout, allow_redirects=True
    ) as response:
        response.raise_for_status()

        content_length = response.headers.get("content-length")
        total_size = int(content_length) if content_length else 0

        downloaded = 0
        start_time = time.time()
        last_progress_time = start_time

        with open(destination, "wb") as f:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if not chunk:
                    continue
                f.write(chunk)
                downloaded += len(chunk)

                # Report progress (max once per 0.5 seconds to avoid spam)
                current_time = time.time()
                if progress_callback and (
                    current_time - last_progress_time >= 0.5
                    or downloaded == total_size
                ):
                    elapsed = current_time - start_time
                    speed = downloaded / elapsed if elapsed > 0 else 0
                    remaining = total_size - downloaded if total_size > 0 else 0
                    eta = remaining / speed if speed > 0 else 0

                    progress_callback(
                        DownloadProgress(
                            bytes_downloaded=downloaded,
                            total_bytes=total_size if total_size > 0 else downloaded,
                            percentage=(downloaded / total_size * 100)
                            if total_size > 0
                            else 0,
                            speed_bps=speed,
                            eta_seconds=eta,
                        )
                    )
                    last_progress_time = current_time

    logger.debug(f"Download complete: {destination} ({downloaded} bytes)")
    return destination


def format_progress(progress: DownloadProgress) -> str:
    """
    Format progress for display.

    Example:
        >>> progress = DownloadProgress(52428800, 104857600, 50.0, 1048576, 50)
        >>> print(format_progress(progress))
        50.0/100.0 MB (50.0%) at 1.0 MB/s ETA: 50s
    """
    mb_downloaded = progress.bytes_downloaded / 1024 / 1024
    mb_total = progress.total_bytes / 1024 / 1024
    speed_mbps = progress.speed_bps / 1024 / 1024

    if progress.total_bytes > 0 and progress.percentage > 0:
        return (
            f"{mb_downloaded:.1f}/{mb_total:.1f} MB "
            f"({progress.percentage:.1f}%) "
            f"at {speed_mbps:.1f} MB/s "
            f"ETA: {progress.eta_seconds:.0f}s"
        )
    return f"{mb_downloaded:.1f} MB at {speed_mbps:.1f} MB/s"


__all__ = [
    "BUN_RELEASES_URL",
    "DownloadProgress",
    "release_file_url",
    "asset_url",
    "download_file",
    "format_progress",
]
