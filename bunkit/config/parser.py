"""YAML configuration parser for bunkit.

Settings are merged from, lowest precedence first: built-in defaults, the
project's bunkit.yaml (or an explicit --config file), BUNKIT_* environment
variables, and command-line flags.

Example bunkit.yaml:

    version: 1.1.0
    platform: linux-x64-musl
    install_root: .bunkit/bun
    timeout: 60
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from bunkit.core.exceptions import ConfigurationError
from bunkit.core.platform import BunSystem
from bunkit.core.version import LATEST, normalize_version

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "bunkit.yaml"
LOCAL_DIR_NAME = ".bunkit"

ENV_VARS = {
    "version": "BUNKIT_VERSION",
    "platform": "BUNKIT_PLATFORM",
    "install_root": "BUNKIT_HOME",
}


@dataclass
class BunkitConfig:
    """Resolved bunkit settings."""

    version: str = LATEST
    platform: Optional[str] = None  # variant name; None means auto-detect
    install_root: Optional[Path] = None  # default: <project>/.bunkit/bun
    sha256: Optional[str] = None  # explicit expected digest
    timeout: int = 30
    lock_timeout: int = 300

    def system(self) -> Optional[BunSystem]:
        """Get the configured variant, or None for auto-detection."""
        if not self.platform:
            return None
        return BunSystem.from_name(self.platform)

    def resolve_install_root(self, project_root: Path) -> Path:
        """Get the installation root, relative paths taken from project_root."""
        if self.install_root is None:
            return get_default_install_root(project_root)
        root = Path(self.install_root).expanduser()
        return root if root.is_absolute() else Path(project_root) / root


def get_default_install_root(project_root: Path) -> Path:
    """
    Get the default installation root for a project.

    Example:
        >>> get_default_install_root(Path('/work/app'))
        PosixPath('/work/app/.bunkit/bun')
    """
    return Path(project_root) / LOCAL_DIR_NAME / "bun"


def load_yaml_config(config_file: Path, required: bool = False) -> Dict[str, Any]:
    """
    Load and parse a YAML configuration file.

    Args:
        config_file: Path to YAML configuration file
        required: If True, raise error if file doesn't exist

    Returns:
        Configuration dictionary (empty dict if file doesn't exist and not required)

    Raises:
        ConfigurationError: If the file is required and missing, or is invalid
    """
    config_file = Path(config_file)
    if not config_file.exists():
        if required:
            raise ConfigurationError(f"Configuration file not found: {config_file}")
        logger.debug(f"Config file not found (optional): {config_file}")
        return {}

    logger.debug(f"Loading configuration from {config_file}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_file}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Invalid configuration in {config_file}: expected a mapping"
        )
    return data


def _parse_and_validate(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate raw values and convert them to BunkitConfig field types."""
    known = {f.name for f in fields(BunkitConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning(f"Ignoring unknown configuration keys: {', '.join(unknown)}")

    values: Dict[str, Any] = {}

    if data.get("version") is not None:
        version = data["version"]
        if not isinstance(version, str):
            # YAML reads 1.10 as the float 1.1
            raise ConfigurationError(
                f"Invalid value for 'version': {version!r} "
                "(quote it, e.g. version: \"1.1.0\")"
            )
        values["version"] = normalize_version(version)

    if data.get("platform"):
        # Fail early on a bad name
        values["platform"] = BunSystem.from_name(str(data["platform"])).dir_name

    if data.get("install_root"):
        values["install_root"] = Path(str(data["install_root"]))

    if data.get("sha256"):
        values["sha256"] = str(data["sha256"]).strip()

    for key in ("timeout", "lock_timeout"):
        if data.get(key) is not None:
            try:
                values[key] = int(data[key])
            except (TypeError, ValueError) as e:
                raise ConfigurationError(
                    f"Invalid value for '{key}': {data[key]!r} (expected seconds)"
                ) from e

    return values


def load_config(
    project_root: Path,
    config_file: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> BunkitConfig:
    """
    Build the effective configuration.

    Args:
        project_root: Project directory (where bunkit.yaml is looked up)
        config_file: Explicit config file (must exist when given)
        overrides: Command-line values; None entries are ignored
        environ: Environment mapping (default: os.environ)

    Returns:
        Merged BunkitConfig

    Raises:
        ConfigurationError: On unreadable files or invalid values
    """
    environ = os.environ if environ is None else environ

    if config_file is not None:
        file_data = load_yaml_config(Path(config_file), required=True)
    else:
        file_data = load_yaml_config(Path(project_root) / CONFIG_FILE_NAME)

    merged: Dict[str, Any] = dict(file_data)

    for key, env_var in ENV_VARS.items():
        value = environ.get(env_var)
        if value:
            logger.debug(f"Using {env_var}={value}")
            merged[key] = value

    for key, value in (overrides or {}).items():
        if value is not None:
            merged[key] = value

    return BunkitConfig(**_parse_and_validate(merged))


__all__ = [
    "CONFIG_FILE_NAME",
    "BunkitConfig",
    "get_default_install_root",
    "load_yaml_config",
    "load_config",
]
