"""
File system utilities for bunkit.

This module provides:
- Zip extraction preserving the archive's internal layout
- Case-insensitive recursive search for an executable
- Marking files executable on POSIX systems
"""

import logging
import os
import stat
import zipfile
from pathlib import Path
from typing import Optional, Union

from bunkit.core.exceptions import ExtractionFailure

logger = logging.getLogger(__name__)

IS_WINDOWS = os.name == "nt"


# ============================================================================
# Archive Extraction
# ============================================================================


def _validate_archive_path(name: str, archive: Path, destination: Path) -> None:
    """
    Validate that an archive member path stays under the destination.

    Raises:
        ExtractionFailure: If the member would be written outside destination
    """
    member_path = (destination / name).resolve()
    if not member_path.is_relative_to(destination.resolve()):
        raise ExtractionFailure(
            archive,
            f"member '{name}' attempts directory traversal; extraction blocked",
        )


def extract_zip(archive_path: Union[str, Path], destination: Union[str, Path]) -> Path:
    """
    Extract a zip archive into a directory.

    Directory entries are created, file entries are written (overwriting
    existing files) after creating their parents. Relative paths inside the
    archive are preserved exactly. A failure part-way leaves whatever was
    already written in place.

    Args:
        archive_path: Path to the zip file
        destination: Directory to extract into

    Returns:
        The destination directory

    Raises:
        ExtractionFailure: If the archive is unreadable, unsafe, or a write fails

    Example:
        >>> extract_zip('bun-linux-x64.zip', '.bunkit/bun/1.1.0')
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.exists():
        raise ExtractionFailure(archive_path, "archive not found")

    try:
        destination.mkdir(parents=True, exist_ok=True)

        with zipfile.ZipFile(archive_path, "r") as zf:
            members = zf.infolist()

            # Validate all paths first
            for member in members:
                _validate_archive_path(member.filename, archive_path, destination)

            for member in members:
                output = destination / member.filename

                if member.is_dir():
                    output.mkdir(parents=True, exist_ok=True)
                    continue

                output.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(member, "r") as source, open(output, "wb") as target:
                    while chunk := source.read(64 * 1024):
                        target.write(chunk)

                _apply_unix_mode(member, output)

            logger.debug(f"Extracted {len(members)} entries to {destination}")

    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError) as e:
        raise ExtractionFailure(archive_path, str(e)) from e

    return destination


def _apply_unix_mode(member: zipfile.ZipInfo, output: Path) -> None:
    """Apply permission bits recorded by a Unix zip tool, if any."""
    mode = (member.external_attr >> 16) & 0o777
    if mode and not IS_WINDOWS:
        os.chmod(output, mode)


# ============================================================================
# Executable Lookup
# ============================================================================


def find_executable(root: Union[str, Path], name: str) -> Optional[Path]:
    """
    Find a file by name anywhere under root.

    The walk is depth-first over each directory's entries sorted by name, and
    a subdirectory is searched as soon as it is reached. Names are compared
    case-insensitively. A missing or empty root yields None.

    Args:
        root: Directory to search
        name: File name to look for (e.g. 'bun' or 'bun.exe')

    Returns:
        Path to the first match, or None

    Example:
        >>> find_executable(Path('.bunkit/bun/1.1.0'), 'bun')
        PosixPath('.bunkit/bun/1.1.0/bun-linux-x64/bun')
    """
    root = Path(root)
    if not root.is_dir():
        return None

    wanted = name.lower()

    try:
        entries = sorted(root.iterdir(), key=lambda p: p.name)
    except OSError as e:
        logger.debug(f"Cannot list {root}: {e}")
        return None

    for entry in entries:
        if entry.is_dir():
            found = find_executable(entry, name)
            if found is not None:
                return found
        elif entry.is_file() and entry.name.lower() == wanted:
            return entry

    return None


def make_executable(path: Union[str, Path]) -> None:
    """
    Add execute permission for user, group and others.

    No-op on Windows, where executability follows the file extension.
    """
    if IS_WINDOWS:
        return

    path = Path(path)
    current = path.stat().st_mode
    path.chmod(current | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


__all__ = [
    "IS_WINDOWS",
    "extract_zip",
    "find_executable",
    "make_executable",
]
