"""
Bun version string handling.

Versions are never validated: anything non-blank is passed through to the
release URLs as typed. Blank input means the newest release.
"""

from typing import Optional

LATEST = "latest"
TAG_PREFIX = "bun-v"


def normalize_version(version: Optional[str]) -> str:
    """
    Normalize a user-supplied version string.

    Args:
        version: Version string, or None

    Returns:
        "latest" for None or blank input, otherwise the trimmed input

    Example:
        >>> normalize_version("  1.1.0 ")
        '1.1.0'
        >>> normalize_version(None)
        'latest'
    """
    if version is None:
        return LATEST
    cleaned = version.strip()
    return cleaned if cleaned else LATEST


def is_latest(version: Optional[str]) -> bool:
    """Check whether a version refers to the newest release."""
    return normalize_version(version) == LATEST


def release_tag(version: str) -> str:
    """Get the release tag for an explicit version (e.g. 'bun-v1.1.0')."""
    return f"{TAG_PREFIX}{version}"


__all__ = ["LATEST", "TAG_PREFIX", "normalize_version", "is_latest", "release_tag"]
