"""
Bun installation and execution for bunkit.
"""

from bunkit.runtime.setup import (
    SetupState,
    BunInstallation,
    SetupResult,
    setup_bun,
)
from bunkit.runtime.runner import BunTask, run_bun

__all__ = [
    "SetupState",
    "BunInstallation",
    "SetupResult",
    "setup_bun",
    "BunTask",
    "run_bun",
]
