"""
Bun download and installation pipeline.

This module orchestrates the core primitives into a single idempotent setup:

    resolve version + variant -> check existing install
        -> download -> verify -> extract -> locate executable

Installations live under ``<root>/<version>/<variant>/`` and are immutable
once extracted. Setup for an installation key that already has its
executable in place does no network or disk work.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from pathlib import Path
from typing import Callable, Optional

from bunkit.core.download import DownloadProgress, asset_url, download_file
from bunkit.core.exceptions import BunkitError, ExecutableNotFound
from bunkit.core.filesystem import extract_zip, find_executable, make_executable
from bunkit.core.locking import LockManager
from bunkit.core.platform import BunSystem
from bunkit.core.verification import (
    fetch_expected_sha256,
    validate_sha256,
    verify_file,
)
from bunkit.core.version import normalize_version

logger = logging.getLogger(__name__)

LOCK_DIR_NAME = ".locks"


class SetupState(Enum):
    """Lifecycle of one installation key."""

    VERSION_RESOLVED = "version_resolved"
    ALREADY_INSTALLED = "already_installed"
    NEEDS_DOWNLOAD = "needs_download"
    DOWNLOADED = "downloaded"
    VERIFIED = "verified"
    EXTRACTED = "extracted"
    INSTALLED = "installed"
    FAILED = "failed"


@dataclass
class BunInstallation:
    """
    Location of one Bun installation, keyed by (version, variant).

    Paths are derived lazily; constructing an installation touches nothing
    on disk.

    Attributes:
        root: Directory holding all installations
        version: Bun version or "latest" (normalized on creation)
        system: Target variant
    """

    root: Path
    version: Optional[str]
    system: BunSystem

    def __post_init__(self):
        self.root = Path(self.root)
        self.version = normalize_version(self.version)

    @property
    def key(self) -> str:
        """Installation key, e.g. '1.1.0-bun-linux-x64'."""
        return f"{self.version}-{self.system.dir_name}"

    @cached_property
    def install_dir(self) -> Path:
        """Directory the asset is downloaded to and extracted into."""
        return self.root / self.version

    @cached_property
    def variant_dir(self) -> Path:
        """Directory holding this variant's extracted distribution."""
        return self.install_dir / self.system.dir_name

    @cached_property
    def asset_path(self) -> Path:
        """Where the downloaded asset is stored until extraction."""
        return self.install_dir / self.system.zip_name

    @cached_property
    def download_url(self) -> str:
        return asset_url(self.version, self.system)

    def find_executable(self) -> Optional[Path]:
        """Look for the executable; None if this key is not installed."""
        return find_executable(self.variant_dir, self.system.exe_name)

    def require_executable(self) -> Path:
        """
        Get the installed executable.

        Raises:
            ExecutableNotFound: If setup has not produced it
        """
        executable = self.find_executable()
        if executable is None:
            raise ExecutableNotFound(self.system.exe_name, self.variant_dir)
        return executable


@dataclass
class SetupResult:
    """Result of a setup run."""

    installation: BunInstallation
    executable: Path
    state: SetupState
    downloaded: bool = False
    sha256: Optional[str] = field(default=None)

    @property
    def was_cached(self) -> bool:
        return self.state == SetupState.ALREADY_INSTALLED


def _transition(installation: BunInstallation, state: SetupState) -> SetupState:
    logger.debug(f"{installation.key}: {state.value}")
    return state


def setup_bun(
    installation: BunInstallation,
    expected_sha256: Optional[str] = None,
    timeout: int = 30,
    lock_timeout: float = 300,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    lock_manager: Optional[LockManager] = None,
) -> SetupResult:
    """
    Ensure Bun is installed for an installation key.

    Args:
        installation: Target installation
        expected_sha256: Known digest of the asset; fetched from the release
            metadata when None
        timeout: HTTP timeout in seconds
        lock_timeout: Seconds to wait for a concurrent setup of the same key
        progress_callback: Optional download progress callback
        lock_manager: Lock manager (default: locks under <root>/.locks)

    Returns:
        SetupResult with the executable path

    Raises:
        DownloadFailure, ChecksumUnavailable, IntegrityMismatch,
        ExtractionFailure, ExecutableNotFound, InstallLockTimeout
    """
    _transition(installation, SetupState.VERSION_RESOLVED)

    existing = installation.find_executable()
    if existing is not None:
        logger.info(f"Bun already installed: {existing.absolute()}")
        state = _transition(installation, SetupState.ALREADY_INSTALLED)
        return SetupResult(installation, existing, state)

    if lock_manager is None:
        lock_manager = LockManager(installation.root / LOCK_DIR_NAME)

    try:
        with lock_manager.install_lock(installation.key, timeout=lock_timeout):
            # Another process may have finished while we waited
            existing = installation.find_executable()
            if existing is not None:
                logger.info(
                    f"Bun installed by another process: {existing.absolute()}"
                )
                state = _transition(installation, SetupState.ALREADY_INSTALLED)
                return SetupResult(installation, existing, state)

            return _install(installation, expected_sha256, timeout, progress_callback)
    except BunkitError:
        _transition(installation, SetupState.FAILED)
        raise


def _install(
    installation: BunInstallation,
    expected_sha256: Optional[str],
    timeout: int,
    progress_callback: Optional[Callable[[DownloadProgress], None]],
) -> SetupResult:
    """Download, verify and extract; caller holds the install lock."""
    # Reject a malformed digest before any network traffic
    if expected_sha256 is not None:
        expected_sha256 = validate_sha256(
            expected_sha256, installation.system.zip_name
        )

    _transition(installation, SetupState.NEEDS_DOWNLOAD)
    asset = installation.asset_path
    downloaded = False

    if asset.exists():
        logger.info(f"Bun zip already present: {asset.absolute()}")
    else:
        url = installation.download_url
        logger.info(f"Downloading Bun: {url} -> {asset.absolute()}")
        download_file(url, asset, timeout=timeout, progress_callback=progress_callback)
        downloaded = True
    _transition(installation, SetupState.DOWNLOADED)

    try:
        if expected_sha256 is None:
            expected_sha256 = fetch_expected_sha256(
                installation.version, installation.system.zip_name, timeout=timeout
            )
        actual_sha256 = verify_file(asset, expected_sha256)
        logger.info(f"Verified {asset.name} (sha256 {actual_sha256})")
        _transition(installation, SetupState.VERIFIED)

        logger.info(
            f"Extracting {asset.name} -> {installation.install_dir.absolute()}"
        )
        extract_zip(asset, installation.install_dir)
    finally:
        # The asset never outlives the pipeline
        asset.unlink(missing_ok=True)
    _transition(installation, SetupState.EXTRACTED)

    executable = installation.require_executable()
    if installation.system.exe_name == "bun":
        make_executable(executable)

    logger.info(f"Bun ready: {executable.absolute()}")
    return SetupResult(
        installation,
        executable,
        _transition(installation, SetupState.INSTALLED),
        downloaded=downloaded,
        sha256=actual_sha256,
    )


__all__ = ["SetupState", "BunInstallation", "SetupResult", "setup_bun"]
