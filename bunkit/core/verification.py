"""
SHA-256 verification of downloaded Bun assets.

This module provides:
- Streaming file hashing (64 KiB reads)
- Lookup of the published digest for an asset on the release metadata page,
  falling back to the SHASUMS256.txt attached to the release
- Verification that deletes the asset on mismatch

The release metadata page lists each asset followed by its digest
("bun-linux-x64.zip ... sha256:<hex>"). A SHASUMS256.txt style body
("<hex>  bun-linux-x64.zip") is what the SHASUMS file contains.
"""

import hashlib
import logging
import re
import secrets
from pathlib import Path
from typing import Optional

import requests
from requests.exceptions import RequestException

from bunkit.core.download import BUN_RELEASES_URL, release_file_url
from bunkit.core.exceptions import ChecksumUnavailable, IntegrityMismatch
from bunkit.core.version import is_latest, normalize_version, release_tag

logger = logging.getLogger(__name__)

METADATA_RELEASES_URL = (
    "https://github.com/Jarred-Sumner/bun-releases-for-updater/releases"
)
SHASUMS_FILE_NAME = "SHASUMS256.txt"
BUFFER_SIZE = 64 * 1024

_SHA256_HEX = re.compile(r"^[0-9a-fA-F]{64}$")


def compute_file_hash(file_path: Path, algorithm: str = "sha256") -> str:
    """
    Compute cryptographic hash of file.

    Args:
        file_path: Path to file
        algorithm: Any algorithm known to hashlib (default 'sha256')

    Returns:
        Lowercase hex string of hash

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If algorithm is not supported
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    hasher = hashlib.new(algorithm.lower())

    with open(file_path, "rb") as f:
        while chunk := f.read(BUFFER_SIZE):
            hasher.update(chunk)

    return hasher.hexdigest().lower()


def metadata_url(version: Optional[str], base_url: str = METADATA_RELEASES_URL) -> str:
    """
    Get the release metadata page listing digests for a version.

    Example:
        >>> metadata_url("1.1.0")
        'https://github.com/Jarred-Sumner/bun-releases-for-updater/releases/tag/bun-v1.1.0'
    """
    base_url = base_url.rstrip("/")
    if is_latest(version):
        return f"{base_url}/latest"
    return f"{base_url}/tag/{release_tag(normalize_version(version))}"


def extract_expected_sha256(text: str, asset_name: str, source: str = "") -> str:
    """
    Find the digest published for an asset in release metadata text.

    Args:
        text: Metadata page or SHASUMS body
        asset_name: Asset file name (e.g. 'bun-linux-x64.zip')
        source: Where the text came from, for error messages

    Returns:
        Lowercase hex digest

    Raises:
        ChecksumUnavailable: If no digest follows the asset name
    """
    near_name = re.compile(
        re.escape(asset_name) + r"[\s\S]{0,400}?sha256:\s*([0-9a-fA-F]{64})"
    )
    match = near_name.search(text)
    if match:
        return match.group(1).lower()

    shasums_line = re.compile(
        r"^\s*([0-9a-fA-F]{64})\s+\*?" + re.escape(asset_name) + r"\s*$",
        re.MULTILINE,
    )
    match = shasums_line.search(text)
    if match:
        return match.group(1).lower()

    raise ChecksumUnavailable(asset_name, source or "release metadata")


def shasums_url(version: Optional[str], base_url: str = BUN_RELEASES_URL) -> str:
    """
    Get the SHASUMS256.txt published with a Bun release.

    Example:
        >>> shasums_url("1.1.0")
        'https://github.com/oven-sh/bun/releases/download/bun-v1.1.0/SHASUMS256.txt'
    """
    return release_file_url(version, SHASUMS_FILE_NAME, base_url)


def _get_text(url: str, timeout: int) -> str:
    response = requests.get(url, timeout=timeout, allow_redirects=True)
    response.raise_for_status()
    return response.text


def fetch_expected_sha256(
    version: Optional[str],
    asset_name: str,
    timeout: int = 30,
    base_url: str = METADATA_RELEASES_URL,
    shasums_base_url: str = BUN_RELEASES_URL,
) -> str:
    """
    Fetch the published SHA-256 of an asset.

    The release metadata page is tried first, then the release's own
    SHASUMS256.txt.

    Args:
        version: Bun version or "latest"
        asset_name: Asset file name
        timeout: Request timeout in seconds
        base_url: Metadata releases base URL
        shasums_base_url: Releases base URL the SHASUMS file is attached to

    Returns:
        Lowercase hex digest

    Raises:
        ChecksumUnavailable: If neither source can be fetched or lists a digest
    """
    page = metadata_url(version, base_url)
    shasums = shasums_url(version, shasums_base_url)
    failures = []

    for source in (page, shasums):
        logger.debug(f"Fetching expected sha256 for {asset_name} from {source}")
        try:
            text = _get_text(source, timeout)
        except RequestException as e:
            logger.debug(f"Cannot fetch {source}: {e}")
            failures.append(f"{source}: {e}")
            continue

        try:
            return extract_expected_sha256(text, asset_name, source)
        except ChecksumUnavailable:
            logger.debug(f"No sha256 for {asset_name} on {source}")
            failures.append(f"{source}: no digest listed")

    raise ChecksumUnavailable(asset_name, f"{page} or {shasums}", "; ".join(failures))


def validate_sha256(expected_sha256: Optional[str], asset_name: str) -> str:
    """
    Normalize an expected SHA-256 digest to lowercase hex.

    Raises:
        ChecksumUnavailable: If the value is not a SHA-256 hex digest
    """
    expected = (expected_sha256 or "").strip().lower()
    if not _SHA256_HEX.match(expected):
        raise ChecksumUnavailable(
            asset_name, "configuration", f"invalid sha256 '{expected_sha256}'"
        )
    return expected


def verify_file(file_path: Path, expected_sha256: str) -> str:
    """
    Verify a file against its expected SHA-256, deleting it on mismatch.

    Args:
        file_path: File to verify
        expected_sha256: Expected digest (hex, any case)

    Returns:
        The actual digest

    Raises:
        IntegrityMismatch: If the digests differ (the file is deleted first)
        ChecksumUnavailable: If expected_sha256 is not a SHA-256 hex digest
        FileNotFoundError: If the file doesn't exist
    """
    file_path = Path(file_path)
    expected = validate_sha256(expected_sha256, file_path.name)

    actual = compute_file_hash(file_path, "sha256")

    if not _constant_time_compare(actual, expected):
        file_path.unlink()
        raise IntegrityMismatch(file_path, expected, actual)

    logger.debug(f"Checksum verified for {file_path.name}: {actual}")
    return actual


def _constant_time_compare(a: str, b: str) -> bool:
    """Compare two strings in constant time."""
    return secrets.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


__all__ = [
    "METADATA_RELEASES_URL",
    "SHASUMS_FILE_NAME",
    "compute_file_hash",
    "metadata_url",
    "shasums_url",
    "extract_expected_sha256",
    "fetch_expected_sha256",
    "validate_sha256",
    "verify_file",
]
