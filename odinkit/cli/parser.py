"""
OdinKit CLI argument parser.

Every command takes the same input options; unset options fall back to the
INPUT_* environment and odinkit.yaml, so a workflow step and a local shell
resolve inputs the same way.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from odinkit import __version__
from odinkit.config.inputs import BUILD_TYPES

logger = logging.getLogger(__name__)


class CLI:
    """OdinKit command-line interface."""

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
            prog="odinkit",
            description="OdinKit - provision the Odin compiler on CI runners",
            epilog='Use "odinkit COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"OdinKit {__version__}"
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

        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_setup_command(subparsers)
        self._add_post_command(subparsers)
        self._add_cache_key_command(subparsers)

        return parser

    def _add_input_arguments(self, parser: argparse.ArgumentParser):
        """Options mirroring the action inputs; unset options fall back to env/config."""
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to configuration file (default: ./odinkit.yaml)",
        )
        parser.add_argument(
            "--repository", metavar="URL", help="Git repository to clone Odin from"
        )
        parser.add_argument(
            "--odin-version",
            metavar="REF",
            help="Branch or tag of Odin to build (default: master)",
        )
        parser.add_argument(
            "--llvm-version",
            metavar="MAJOR",
            help="LLVM major version to build against (default: 17)",
        )
        parser.add_argument(
            "--build-type",
            metavar="TYPE",
            help=f"Build type passed to the build script ({'|'.join(BUILD_TYPES)}) [default: release]",
        )
        parser.add_argument(
            "--no-cache",
            dest="cache",
            action="store_const",
            const=False,
            default=None,
            help="Do not restore or save the cached checkout",
        )
        parser.add_argument(
            "--workspace",
            metavar="DIR",
            help="Directory the Odin checkout is placed in (default: $RUNNER_TEMP or cwd)",
        )
        parser.add_argument(
            "--cache-dir",
            metavar="DIR",
            help="Local cache directory (default: $ODINKIT_CACHE_DIR or ~/.odinkit/cache)",
        )

    def _add_setup_command(self, subparsers):
        """Add 'setup' subcommand."""
        parser = subparsers.add_parser(
            "setup",
            help="Provision the Odin compiler",
            description="Restore or clone Odin, install LLVM, build and add Odin to PATH",
        )
        self._add_input_arguments(parser)

    def _add_post_command(self, subparsers):
        """Add 'post' subcommand."""
        parser = subparsers.add_parser(
            "post",
            help="Save the built compiler to the cache",
            description="Post step: save the Odin checkout if setup rebuilt it",
        )
        self._add_input_arguments(parser)

    def _add_cache_key_command(self, subparsers):
        """Add 'cache-key' subcommand."""
        parser = subparsers.add_parser(
            "cache-key",
            help="Print the cache key for the current inputs",
            description="Print the cache key setup would restore and post would save",
        )
        self._add_input_arguments(parser)

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
        except Exception as e:
            logger.error(f"Error: {e}")
            # Only shown with --verbose
            logger.debug("Traceback:", exc_info=True)
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
            "setup": "odinkit.cli.commands.setup",
            "post": "odinkit.cli.commands.post",
            "cache-key": "odinkit.cli.commands.cache_key",
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
