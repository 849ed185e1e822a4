"""
Setup command implementation.

Downloads, verifies and unpacks Bun, then prints the executable path.
"""

import logging

from bunkit.cli.utils import ensure_bun

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the setup command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    result = ensure_bun(args)

    if result.was_cached:
        logger.debug(f"Nothing to do for {result.installation.key}")

    print(result.executable.absolute())
    return 0
