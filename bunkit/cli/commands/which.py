"""
Which command implementation.

Prints the installed Bun executable without downloading anything.
"""

from bunkit.cli.utils import get_installation


def run(args) -> int:
    """
    Run the which command.

    Returns:
        0 if Bun is installed

    Raises:
        ExecutableNotFound: If setup has not been run for this installation
    """
    installation = get_installation(args)
    print(installation.require_executable().absolute())
    return 0
