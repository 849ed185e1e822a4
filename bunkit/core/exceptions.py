"""
Centralized exception hierarchy for bunkit.

Every failure of the setup pipeline maps to one exception type below. Each
type records the pipeline stage it belongs to and the process exit code the
CLI reports for it.
"""

from pathlib import Path
from typing import Optional, Union


# ============================================================================
# Base Exceptions
# ============================================================================


class BunkitError(Exception):
    """Base exception for all bunkit errors."""

    stage = "bunkit"
    exit_code = 1


class ConfigurationError(BunkitError):
    """Raised when configuration values are invalid or unreadable."""

    stage = "config"
    exit_code = 10


# ============================================================================
# Resolution Exceptions
# ============================================================================


class UnsupportedPlatform(BunkitError):
    """Raised when no Bun variant matches the host OS and architecture."""

    stage = "resolve"
    exit_code = 2

    def __init__(self, os_name: str, arch: str):
        self.os_name = os_name
        self.arch = arch
        super().__init__(
            f"[{self.stage}] Unsupported OS/arch: os={os_name} arch={arch}. "
            "Pass --platform to select a variant explicitly."
        )


# ============================================================================
# Download and Verification Exceptions
# ============================================================================


class DownloadFailure(BunkitError):
    """Raised when fetching an asset fails."""

    stage = "download"
    exit_code = 3

    def __init__(self, url: str, destination: Union[str, Path], reason: str):
        self.url = url
        self.destination = Path(destination)
        super().__init__(
            f"[{self.stage}] Failed to download {url} -> {destination}: {reason}"
        )


class IntegrityMismatch(BunkitError):
    """Raised when a downloaded asset does not match its expected SHA-256."""

    stage = "verify"
    exit_code = 4

    def __init__(self, path: Union[str, Path], expected: str, actual: str):
        self.path = Path(path)
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"[{self.stage}] SHA-256 mismatch for {self.path.name}\n"
            f"Expected: {expected}\n"
            f"Actual:   {actual}\n"
            f"Deleted corrupted download: {self.path}"
        )


class ChecksumUnavailable(BunkitError):
    """Raised when the expected SHA-256 of an asset cannot be obtained."""

    stage = "verify"
    exit_code = 7

    def __init__(self, asset_name: str, source: str, reason: Optional[str] = None):
        self.asset_name = asset_name
        self.source = source
        msg = f"[{self.stage}] Could not find sha256 for {asset_name} on {source}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


# ============================================================================
# Installation Exceptions
# ============================================================================


class ExtractionFailure(BunkitError):
    """Raised when an archive cannot be unpacked."""

    stage = "extract"
    exit_code = 5

    def __init__(self, archive: Union[str, Path], reason: str):
        self.archive = Path(archive)
        super().__init__(f"[{self.stage}] Failed to extract {archive}: {reason}")


class ExecutableNotFound(BunkitError):
    """Raised when the runtime executable is missing after extraction."""

    stage = "locate"
    exit_code = 6

    def __init__(self, exe_name: str, search_root: Union[str, Path]):
        self.exe_name = exe_name
        self.search_root = Path(search_root)
        super().__init__(
            f"[{self.stage}] Failed to locate {exe_name} under: {search_root}"
        )


class ExecutableNotResolved(BunkitError):
    """Raised when a run is attempted before setup produced an executable."""

    stage = "run"
    exit_code = 8


class InstallLockTimeout(BunkitError):
    """Raised when another process holds the installation lock for too long."""

    stage = "setup"
    exit_code = 9


__all__ = [
    "BunkitError",
    "ConfigurationError",
    "UnsupportedPlatform",
    "DownloadFailure",
    "IntegrityMismatch",
    "ChecksumUnavailable",
    "ExtractionFailure",
    "ExecutableNotFound",
    "ExecutableNotResolved",
    "InstallLockTimeout",
]
