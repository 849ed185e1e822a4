"""
Shared utilities for CLI commands.

Turns parsed arguments into a configuration and an installation, and runs
the setup-then-execute sequence that every Bun-invoking command shares.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence

from bunkit.config import BunkitConfig, load_config
from bunkit.core.download import DownloadProgress
from bunkit.core.platform import resolve_system
from bunkit.runtime import BunInstallation, BunTask, SetupResult, setup_bun

logger = logging.getLogger(__name__)


def get_project_root(args) -> Path:
    """Get the resolved project root from parsed arguments."""
    return Path(getattr(args, "project_root", None) or Path.cwd()).resolve()


def build_config(args) -> BunkitConfig:
    """
    Build the effective configuration from file, environment and flags.

    Args:
        args: Parsed command-line arguments

    Returns:
        Merged BunkitConfig
    """
    overrides = {
        "version": getattr(args, "bun_version", None),
        "platform": getattr(args, "platform", None),
        "install_root": getattr(args, "install_root", None),
        "sha256": getattr(args, "sha256", None),
    }
    return load_config(
        get_project_root(args),
        config_file=getattr(args, "config", None),
        overrides=overrides,
    )


def get_installation(args, config: Optional[BunkitConfig] = None) -> BunInstallation:
    """
    Resolve the installation selected by arguments and configuration.

    Raises:
        UnsupportedPlatform: If no platform is configured and detection fails
        ConfigurationError: On invalid configuration
    """
    config = config or build_config(args)
    system = resolve_system(config.system())
    root = config.resolve_install_root(get_project_root(args))
    return BunInstallation(root=root, version=config.version, system=system)


def _log_progress(progress: DownloadProgress) -> None:
    logger.debug(str(progress))


def ensure_bun(args, config: Optional[BunkitConfig] = None) -> SetupResult:
    """
    Run setup for the selected installation (a no-op when already installed).

    Args:
        args: Parsed command-line arguments
        config: Pre-built configuration (built from args when None)

    Returns:
        SetupResult
    """
    config = config or build_config(args)
    installation = get_installation(args, config)
    return setup_bun(
        installation,
        expected_sha256=config.sha256,
        timeout=config.timeout,
        lock_timeout=config.lock_timeout,
        progress_callback=_log_progress,
    )


def strip_separator(bun_args: Optional[Sequence[str]]) -> list:
    """Drop a leading '--' left in front of pass-through arguments."""
    bun_args = list(bun_args or [])
    if bun_args and bun_args[0] == "--":
        bun_args = bun_args[1:]
    return bun_args


def run_with_bun(args, bun_args: Sequence[str]) -> int:
    """
    Set up Bun, then run it with bun_args in the project root.

    The task is built before setup and resolves its executable only when it
    executes, after setup has completed.

    Returns:
        Bun's exit code
    """
    config = build_config(args)
    installation = get_installation(args, config)

    task = BunTask(working_dir=get_project_root(args), args=bun_args)
    task.bind_provider(installation.require_executable)

    ensure_bun(args, config)

    return task.execute()


__all__ = [
    "get_project_root",
    "build_config",
    "get_installation",
    "ensure_bun",
    "strip_separator",
    "run_with_bun",
]
