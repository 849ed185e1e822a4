"""
Run command implementation.

Runs Bun with arbitrary pass-through arguments: bunkit run -- <args...>
"""

from bunkit.cli.utils import run_with_bun, strip_separator


def run(args) -> int:
    """
    Run the run command.

    Returns:
        Bun's exit code
    """
    return run_with_bun(args, strip_separator(args.bun_args))
