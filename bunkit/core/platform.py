"""
Platform detection for bunkit.

Maps the host operating system and CPU architecture to one of the Bun release
variants. Each variant carries the fixed name of its release asset and of the
executable inside it.

Only the five mainstream (OS, arch) pairs are auto-detected. Baseline builds
(for CPUs without AVX2) and musl builds (Alpine and similar) must be selected
explicitly.

Usage:
    from bunkit.core.platform import resolve_system

    system = resolve_system()            # auto-detect
    system = resolve_system("linux-x64-musl")
    print(system.zip_name, system.exe_name)
"""

import logging
import platform
from enum import Enum
from typing import List, Optional, Union

from bunkit.core.exceptions import ConfigurationError, UnsupportedPlatform

logger = logging.getLogger(__name__)


class BunSystem(Enum):
    """Supported Bun release variants: (asset zip name, executable name)."""

    WINDOWS_X64 = ("bun-windows-x64.zip", "bun.exe")
    WINDOWS_X64_BASELINE = ("bun-windows-x64-baseline.zip", "bun.exe")
    DARWIN_AARCH64 = ("bun-darwin-aarch64.zip", "bun")
    DARWIN_X64 = ("bun-darwin-x64.zip", "bun")
    LINUX_X64 = ("bun-linux-x64.zip", "bun")
    LINUX_X64_BASELINE = ("bun-linux-x64-baseline.zip", "bun")
    LINUX_AARCH64 = ("bun-linux-aarch64.zip", "bun")
    LINUX_X64_MUSL = ("bun-linux-x64-musl.zip", "bun")
    LINUX_X64_MUSL_BASELINE = ("bun-linux-x64-musl-baseline.zip", "bun")
    LINUX_AARCH64_MUSL = ("bun-linux-aarch64-musl.zip", "bun")

    @property
    def zip_name(self) -> str:
        return self.value[0]

    @property
    def exe_name(self) -> str:
        return self.value[1]

    @property
    def dir_name(self) -> str:
        """
        Name of the top-level directory inside the asset.

        Example:
            >>> BunSystem.LINUX_X64.dir_name
            'bun-linux-x64'
        """
        name = self.zip_name
        return name[: -len(".zip")] if name.endswith(".zip") else name

    @classmethod
    def from_name(cls, name: str) -> "BunSystem":
        """
        Look up a variant by enum name or asset name.

        Accepts 'LINUX_X64', 'linux_x64', 'linux-x64', 'bun-linux-x64' and
        'bun-linux-x64.zip' alike.

        Raises:
            ConfigurationError: If the name matches no variant
        """
        key = name.strip()
        for system in cls:
            candidates = {
                system.name.lower(),
                system.dir_name,
                system.zip_name,
                system.dir_name[len("bun-") :],
            }
            if key.lower() in candidates or key.lower().replace("_", "-") in candidates:
                return system

        raise ConfigurationError(
            f"Unknown Bun platform '{name}'. "
            f"Valid platforms: {', '.join(supported_systems())}"
        )

    def __str__(self) -> str:
        return self.dir_name


def _normalize_os(os_name: str) -> str:
    """Normalize an OS name to 'windows', 'macos', 'linux', or the input lowered."""
    name = os_name.lower()
    if name.startswith("win") or name.startswith("cygwin") or name.startswith("msys"):
        return "windows"
    if name in ("darwin", "macos", "mac os x") or name.startswith("mac"):
        return "macos"
    if "linux" in name:
        return "linux"
    return name


def _normalize_arch(arch: str) -> str:
    """Normalize a machine name to 'x64', 'arm64', or the input lowered."""
    machine = arch.lower()
    if machine in ("x86_64", "amd64", "x64"):
        return "x64"
    if machine in ("aarch64", "arm64", "armv8", "armv8l"):
        return "arm64"
    return machine


# Order matters: first match wins.
_DETECTION_RULES = [
    ("windows", "x64", BunSystem.WINDOWS_X64),
    ("macos", "arm64", BunSystem.DARWIN_AARCH64),
    ("macos", "x64", BunSystem.DARWIN_X64),
    ("linux", "arm64", BunSystem.LINUX_AARCH64),
    ("linux", "x64", BunSystem.LINUX_X64),
]


def detect_system(
    os_name: Optional[str] = None, arch: Optional[str] = None
) -> BunSystem:
    """
    Detect the Bun variant for the host (or for the given OS/arch).

    Args:
        os_name: OS name as reported by platform.system() (default: host)
        arch: Machine name as reported by platform.machine() (default: host)

    Returns:
        Matching BunSystem

    Raises:
        UnsupportedPlatform: If no rule matches
    """
    os_name = os_name if os_name is not None else platform.system()
    arch = arch if arch is not None else platform.machine()

    normalized_os = _normalize_os(os_name)
    normalized_arch = _normalize_arch(arch)

    for rule_os, rule_arch, system in _DETECTION_RULES:
        if normalized_os == rule_os and normalized_arch == rule_arch:
            logger.debug(f"Detected Bun platform {system.name} ({os_name}/{arch})")
            return system

    raise UnsupportedPlatform(os_name, arch)


def resolve_system(override: Union[BunSystem, str, None] = None) -> BunSystem:
    """
    Resolve the Bun variant, preferring an explicit override.

    Args:
        override: BunSystem or variant name; None or blank means auto-detect

    Returns:
        Resolved BunSystem
    """
    if isinstance(override, BunSystem):
        return override
    if override and override.strip():
        return BunSystem.from_name(override)
    return detect_system()


def supported_systems() -> List[str]:
    """Get the names of all supported variants (e.g. 'linux-x64-musl')."""
    return [system.dir_name[len("bun-") :] for system in BunSystem]


__all__ = [
    "BunSystem",
    "detect_system",
    "resolve_system",
    "supported_systems",
]
