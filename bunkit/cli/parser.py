"""
bunkit CLI argument parser.

This module implements the command-line interface for bunkit using argparse.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from bunkit import __version__
from bunkit.core.exceptions import BunkitError
from bunkit.core.platform import supported_systems

logger = logging.getLogger(__name__)


class CLI:
    """bunkit command-line interface."""

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="bunkit",
            description="bunkit - project-local Bun runtime manager",
            epilog='Use "bunkit COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"bunkit {__version__}"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to configuration file (default: ./bunkit.yaml)",
        )
        parser.add_argument(
            "--project-root",
            type=Path,
            metavar="PATH",
            default=Path.cwd(),
            help="Project root directory (default: current directory)",
        )
        parser.add_argument(
            "--install-root",
            type=Path,
            metavar="PATH",
            help="Directory holding Bun installations (default: <project>/.bunkit/bun)",
        )

        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_setup_command(subparsers)
        self._add_run_command(subparsers)
        self._add_install_command(subparsers)
        self._add_test_command(subparsers)
        self._add_add_command(subparsers)
        self._add_script_command(subparsers)
        self._add_which_command(subparsers)
        self._add_platforms_command(subparsers)

        return parser

    def _add_runtime_options(self, parser):
        """Add --version/--platform options selecting the installation."""
        parser.add_argument(
            "--version",
            dest="bun_version",
            metavar="VERSION",
            help='Bun version, e.g. 1.1.0 (default: "latest")',
        )
        parser.add_argument(
            "--platform",
            metavar="PLATFORM",
            help=(
                "Bun platform variant (default: auto-detect). "
                f"One of: {', '.join(supported_systems())}"
            ),
        )

    def _add_setup_command(self, subparsers):
        """Add 'setup' subcommand."""
        parser = subparsers.add_parser(
            "setup",
            help="Download and install Bun",
            description="Download, verify and unpack Bun into the project",
        )
        self._add_runtime_options(parser)
        parser.add_argument(
            "--sha256",
            metavar="HEX",
            help="Expected SHA-256 of the release asset (skips the metadata lookup)",
        )

    def _add_run_command(self, subparsers):
        """Add 'run' subcommand."""
        parser = subparsers.add_parser(
            "run",
            help="Run Bun with arbitrary arguments",
            description="Set up Bun if needed, then run it: bunkit run -- <args...>",
        )
        self._add_runtime_options(parser)
        parser.add_argument(
            "bun_args",
            nargs=argparse.REMAINDER,
            metavar="ARGS",
            help="Arguments passed to Bun verbatim (after --)",
        )

    def _add_install_command(self, subparsers):
        """Add 'install' subcommand."""
        parser = subparsers.add_parser(
            "install",
            help="Install dependencies (bun install)",
            description="Install project dependencies with 'bun install'",
        )
        self._add_runtime_options(parser)

    def _add_test_command(self, subparsers):
        """Add 'test' subcommand."""
        parser = subparsers.add_parser(
            "test",
            help="Run tests (bun test)",
            description="Run the project's tests with 'bun test'",
        )
        self._add_runtime_options(parser)
        parser.add_argument(
            "bun_args",
            nargs=argparse.REMAINDER,
            metavar="ARGS",
            help="Extra arguments for 'bun test'",
        )

    def _add_add_command(self, subparsers):
        """Add 'add' subcommand."""
        parser = subparsers.add_parser(
            "add",
            help="Add a package (bun add)",
            description="Add one or more packages with 'bun add'",
        )
        self._add_runtime_options(parser)
        parser.add_argument("packages", nargs="+", metavar="PACKAGE")

    def _add_script_command(self, subparsers):
        """Add 'script' subcommand."""
        parser = subparsers.add_parser(
            "script",
            help="Run a package.json script (bun run <name>)",
            description="Run a package.json script with 'bun run'",
        )
        self._add_runtime_options(parser)
        parser.add_argument("script", metavar="NAME", help="Script name")

    def _add_which_command(self, subparsers):
        """Add 'which' subcommand."""
        parser = subparsers.add_parser(
            "which",
            help="Print the installed Bun executable",
            description="Print the Bun executable path without installing",
        )
        self._add_runtime_options(parser)

    def _add_platforms_command(self, subparsers):
        """Add 'platforms' subcommand."""
        subparsers.add_parser(
            "platforms",
            help="List supported platforms",
            description="List Bun platform variants; '*' marks the detected one",
        )

    def parse_args(self, args: Optional[List[str]] = None):
        """
        Parse command-line arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        parsed_args = self.parse_args(args)

        self._configure_logging(parsed_args)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except BunkitError as e:
            logger.error(f"Error: {e}")
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return e.exit_code
        except Exception as e:
            logger.error(f"Error: {e}")
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return 1

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            force=True,  # Reconfigure if already configured
        )

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments with command field

        Returns:
            Exit code from command handler
        """
        command_map = {
            "setup": "bunkit.cli.commands.setup",
            "run": "bunkit.cli.commands.run",
            "install": "bunkit.cli.commands.install",
            "test": "bunkit.cli.commands.test",
            "add": "bunkit.cli.commands.add",
            "script": "bunkit.cli.commands.script",
            "which": "bunkit.cli.commands.which",
            "platforms": "bunkit.cli.commands.platforms",
        }

        module_name = command_map.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        module = importlib.import_module(module_name)
        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
