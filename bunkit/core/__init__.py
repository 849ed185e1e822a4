"""
Core functionality for bunkit.

This package contains the pipeline primitives the setup and run layers are
built from: version handling, platform resolution, download, verification,
extraction, executable lookup and locking.
"""

from .exceptions import (
    BunkitError,
    ConfigurationError,
    UnsupportedPlatform,
    DownloadFailure,
    IntegrityMismatch,
    ChecksumUnavailable,
    ExtractionFailure,
    ExecutableNotFound,
    ExecutableNotResolved,
    InstallLockTimeout,
)

from .version import (
    LATEST,
    normalize_version,
)

from .platform import (
    BunSystem,
    detect_system,
    resolve_system,
    supported_systems,
)

from .download import (
    asset_url,
    download_file,
)

from .verification import (
    compute_file_hash,
    fetch_expected_sha256,
    verify_file,
)

from .filesystem import (
    extract_zip,
    find_executable,
)

from .locking import LockManager

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
    "LATEST",
    "normalize_version",
    "BunSystem",
    "detect_system",
    "resolve_system",
    "supported_systems",
    "asset_url",
    "download_file",
    "compute_file_hash",
    "fetch_expected_sha256",
    "verify_file",
    "extract_zip",
    "find_executable",
    "LockManager",
]
