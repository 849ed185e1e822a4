"""
Concurrent access control for Bun installations.

Two bunkit processes setting up the same (version, variant) pair would
otherwise download and extract into the same directory at once. A file lock
per installation key serializes them: the first process installs, the others
wait and then find the finished installation.

Usage:
    from bunkit.core.locking import LockManager

    lock_manager = LockManager(install_root / ".locks")
    with lock_manager.install_lock("1.1.0-bun-linux-x64", timeout=300):
        ...  # download, verify, extract
"""

import logging
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout as LockTimeout

from bunkit.core.exceptions import InstallLockTimeout

logger = logging.getLogger(__name__)


class LockManager:
    """
    Manages file locks for Bun installations.

    Uses file-based locking with the `filelock` library so that locks work
    across processes and are released when a process dies.

    Attributes:
        lock_dir: Directory where lock files are stored
    """

    def __init__(self, lock_dir: Path):
        self.lock_dir = Path(lock_dir)
        self.lock_dir.mkdir(parents=True, exist_ok=True)

    def lock_path(self, key: str) -> Path:
        """Get the lock file path for an installation key."""
        safe_key = key.replace("/", "-").replace("\\", "-").replace(":", "-")
        return self.lock_dir / f"install-{safe_key}.lock"

    @contextmanager
    def install_lock(self, key: str, timeout: float = 300):
        """
        Acquire the lock for one installation key.

        Args:
            key: Installation key (e.g. '1.1.0-bun-linux-x64')
            timeout: Maximum wait time in seconds; negative waits forever

        Yields:
            None

        Raises:
            InstallLockTimeout: If the lock can't be acquired within timeout
        """
        lock_path = self.lock_path(key)
        lock = FileLock(lock_path, timeout=timeout)

        try:
            lock.acquire()
        except LockTimeout as e:
            logger.error(
                f"Could not acquire install lock for {key} after {timeout}s. "
                "Another process may be installing this Bun version."
            )
            raise InstallLockTimeout(
                f"[setup] Could not acquire install lock for {key} after {timeout}s "
                f"({lock_path}). Another process may be installing this Bun version."
            ) from e

        try:
            logger.debug(f"Acquired install lock: {lock_path}")
            yield
        finally:
            lock.release()
            logger.debug(f"Released install lock: {lock_path}")


__all__ = ["LockManager"]
