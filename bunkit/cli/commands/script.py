"""
Script command implementation.

Runs a package.json script with 'bun run <name>'.
"""

from bunkit.cli.utils import run_with_bun


def run(args) -> int:
    """Run the script command."""
    return run_with_bun(args, ["run", args.script])
