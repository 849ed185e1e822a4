"""
Platforms command implementation.

Lists supported Bun platform variants and marks the detected one.
"""

import logging

from bunkit.core.exceptions import UnsupportedPlatform
from bunkit.core.platform import BunSystem, detect_system

logger = logging.getLogger(__name__)


def run(args) -> int:
    """Run the platforms command."""
    try:
        detected = detect_system()
    except UnsupportedPlatform as e:
        logger.warning(str(e))
        detected = None

    for system in BunSystem:
        marker = "*" if system is detected else " "
        print(f"{marker} {system.dir_name[len('bun-'):]:<24} {system.zip_name}")

    return 0
