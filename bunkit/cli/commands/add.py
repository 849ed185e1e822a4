"""
Add command implementation.

Adds packages to the project with 'bun add'.
"""

from bunkit.cli.utils import run_with_bun


def run(args) -> int:
    """Run the add command."""
    return run_with_bun(args, ["add", *args.packages])
