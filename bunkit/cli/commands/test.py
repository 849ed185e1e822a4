"""
Test command implementation.

Runs the project's tests with 'bun test'.
"""

from bunkit.cli.utils import run_with_bun, strip_separator


def run(args) -> int:
    """Run the test command."""
    return run_with_bun(args, ["test", *strip_separator(args.bun_args)])
