"""
Run the installed Bun executable.

A BunTask is configured up front (arguments, working directory) but binds
its executable late: either a path set directly, or a provider that is only
called when the task executes. This lets a task be built before setup has
run, while still failing loudly if setup never produced an executable.

Usage:
    task = BunTask(working_dir=project_root)
    task.args("install")
    task.bind_provider(installation.require_executable)
    exit_code = task.execute()
"""

import logging
import subprocess
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from bunkit.core.exceptions import BunkitError, ExecutableNotResolved

logger = logging.getLogger(__name__)


class BunTask:
    """A single invocation of the Bun executable."""

    def __init__(
        self,
        working_dir: Optional[Path] = None,
        args: Optional[Sequence[str]] = None,
    ):
        """
        Initialize task.

        Args:
            working_dir: Directory to run in (default: current directory)
            args: Initial argument list
        """
        self.working_dir = Path(working_dir) if working_dir else Path.cwd()
        self._args: List[str] = list(args or [])
        self._executable: Optional[Path] = None
        self._provider: Optional[Callable[[], Optional[Path]]] = None

    @property
    def arguments(self) -> List[str]:
        return list(self._args)

    def args(self, *args: str) -> "BunTask":
        """Append arguments."""
        self._args.extend(args)
        return self

    def set_args(self, args: Optional[Sequence[str]]) -> "BunTask":
        """Replace all arguments."""
        self._args = list(args or [])
        return self

    def bind_executable(self, executable: Path) -> "BunTask":
        """Bind a concrete executable path."""
        self._executable = Path(executable)
        return self

    def bind_provider(self, provider: Callable[[], Optional[Path]]) -> "BunTask":
        """Bind a callable resolving the executable at execution time."""
        self._provider = provider
        return self

    def resolve_executable(self) -> Path:
        """
        Resolve the executable, calling the provider if needed.

        Raises:
            ExecutableNotResolved: If nothing is bound or the provider fails
        """
        if self._executable is None and self._provider is not None:
            try:
                resolved = self._provider()
            except BunkitError as e:
                raise ExecutableNotResolved(
                    f"[run] Bun executable not resolved (run setup first): {e}"
                ) from e
            if resolved is not None:
                self._executable = Path(resolved)

        if self._executable is None:
            raise ExecutableNotResolved(
                "[run] Bun executable not resolved (run setup first)"
            )
        return self._executable

    def command(self) -> List[str]:
        """Get the full command line."""
        return [str(self.resolve_executable().absolute()), *self._args]

    def execute(self) -> int:
        """
        Run Bun, streaming its output to this process's stdout/stderr.

        Returns:
            Bun's exit code

        Raises:
            ExecutableNotResolved: If no executable is bound or it can't be started
        """
        cmd = self.command()

        logger.info(f"Bun executable: [{cmd[0]}]")
        logger.info(f"Bun arguments : {self._args}")
        logger.debug(f"Working directory: {self.working_dir}")

        try:
            result = subprocess.run(cmd, cwd=self.working_dir)
        except OSError as e:
            raise ExecutableNotResolved(
                f"[run] Failed to start {cmd[0]} in {self.working_dir}: {e}"
            ) from e

        if result.returncode != 0:
            logger.debug(f"Bun exited with code {result.returncode}")
        return result.returncode


def run_bun(
    executable: Path, working_dir: Path, arguments: Sequence[str]
) -> int:
    """
    Run Bun once with the given arguments.

    Args:
        executable: Bun executable path
        working_dir: Directory to run in
        arguments: Arguments passed through verbatim

    Returns:
        Bun's exit code
    """
    task = BunTask(working_dir=working_dir, args=arguments)
    task.bind_executable(executable)
    return task.execute()


__all__ = ["BunTask", "run_bun"]
