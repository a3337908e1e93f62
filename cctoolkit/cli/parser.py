"""
cctoolkit CLI argument parser.

This module implements the command-line interface for cctoolkit using argparse.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from cctoolkit.core.exceptions import CCToolkitError

# Get version from package
try:
    from importlib.metadata import version

    __version__ = version("cctoolkit")
except Exception:
    __version__ = "0.1.0"

logger = logging.getLogger(__name__)

OPT_LEVEL_CHOICES = ["0", "1", "2", "3", "s", "z"]


class CLI:
    """cctoolkit command-line interface."""

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
            prog="cctk",
            description="cctoolkit - C/C++ compiler resolution and argument assembly",
            epilog='Use "cctk COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"cctoolkit {__version__}"
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
            help="Path to configuration file (default: ./cctoolkit.yaml)",
        )

        # Subcommands
        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_detect_command(subparsers)
        self._add_probe_command(subparsers)
        self._add_args_command(subparsers)
        self._add_archive_command(subparsers)

        return parser

    def _add_target_options(self, parser):
        """Options selecting the language and target, shared by commands."""
        parser.add_argument(
            "--cpp", action="store_true", help="Use the C++ compiler (CXX)"
        )
        parser.add_argument(
            "--target",
            metavar="TRIPLE",
            help="Target triple (default: host)",
        )
        parser.add_argument(
            "--host",
            metavar="TRIPLE",
            help="Host triple (default: detected)",
        )

    def _add_detect_command(self, subparsers):
        """Add 'detect' subcommand."""
        parser = subparsers.add_parser(
            "detect",
            help="Resolve and classify the compiler",
            description="Resolve the compiler for the target and report its family and wrapper",
        )
        self._add_target_options(parser)

    def _add_probe_command(self, subparsers):
        """Add 'probe' subcommand."""
        parser = subparsers.add_parser(
            "probe",
            help="Check whether the compiler accepts flags",
            description="Run a trial compile for each flag and report the result",
            epilog='Put "--" before the flags, e.g. "cctk probe -- -fno-plt -Wshadow"',
        )
        parser.add_argument("flags", nargs="+", metavar="FLAG", help="Flags to check")
        self._add_target_options(parser)

    def _add_args_command(self, subparsers):
        """Add 'args' subcommand."""
        parser = subparsers.add_parser(
            "args",
            help="Print the compile command for a source file",
            description="Assemble and print the full compile command for one source file",
        )
        parser.add_argument("source", type=Path, metavar="SOURCE", help="Source file")
        parser.add_argument(
            "--object",
            "-o",
            type=Path,
            metavar="OBJECT",
            help="Object file (default: SOURCE with .o/.obj suffix)",
        )
        parser.add_argument(
            "-O",
            dest="opt_level",
            choices=OPT_LEVEL_CHOICES,
            metavar="LEVEL",
            help="Optimization level (0|1|2|3|s|z)",
        )
        parser.add_argument(
            "--debug", "-g", action="store_true", default=None, help="Emit debug info"
        )
        parser.add_argument(
            "-D",
            dest="defines",
            action="append",
            default=[],
            metavar="NAME[=VALUE]",
            help="Preprocessor define (can be used multiple times)",
        )
        parser.add_argument(
            "-I",
            dest="includes",
            action="append",
            default=[],
            metavar="DIR",
            help="Include directory (can be used multiple times)",
        )
        parser.add_argument(
            "--flag",
            dest="flags",
            action="append",
            default=[],
            metavar="FLAG",
            help="Extra compiler flag (can be used multiple times)",
        )
        parser.add_argument(
            "--flag-if-supported",
            dest="flags_if_supported",
            action="append",
            default=[],
            metavar="FLAG",
            help="Extra flag added only if the compiler accepts it",
        )
        self._add_target_options(parser)

    def _add_archive_command(self, subparsers):
        """Add 'archive' subcommand."""
        parser = subparsers.add_parser(
            "archive",
            help="Print the archive command for object files",
            description="Print the command packing object files into a static library",
        )
        parser.add_argument("library", type=Path, metavar="LIB", help="Output library")
        parser.add_argument(
            "objects", nargs="+", type=Path, metavar="OBJECT", help="Object files"
        )
        self._add_target_options(parser)

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

        # Configure logging
        self._configure_logging(parsed_args)

        # Check if command specified
        if not parsed_args.command:
            self.parser.print_help()
            return 1

        # Dispatch to command handler
        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except CCToolkitError as e:
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
            level = logging.WARNING
            format_str = "%(levelname)s: %(message)s"

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
        # Command module mapping
        command_map = {
            "detect": "cctoolkit.cli.commands.detect",
            "probe": "cctoolkit.cli.commands.probe",
            "args": "cctoolkit.cli.commands.args",
            "archive": "cctoolkit.cli.commands.archive",
        }

        module_name = command_map.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        import importlib

        module = importlib.import_module(module_name)

        # Call run() function in module
        if not hasattr(module, "run"):
            logger.error(f"Command module {module_name} has no run() function")
            return 1

        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
