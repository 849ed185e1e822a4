"""
Install command implementation.

Installs project dependencies with 'bun install'.
"""

from bunkit.cli.utils import run_with_bun


def run(args) -> int:
    """Run the install command."""
    return run_with_bun(args, ["install"])
