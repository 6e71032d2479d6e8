"""
stereodnn CLI - main entry point.

Routes commands to modular command implementations in stereodnn.cli.
This module is a thin router; all logic lives in command classes.
"""

import argparse
import sys
from typing import List, Optional

from stereodnn import __version__
from stereodnn.cli import BenchmarkCommand, CheckCommand, ConfigCommand, InfoCommand


def create_parser() -> argparse.ArgumentParser:
    """
    Create the main argument parser with subcommands.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="stereodnn",
        description="stereodnn - cost-volume, bias and precision kernels for stereo inference",
        epilog="""
Examples:
  # Show backends and device limits
  stereodnn info

  # Verify kernels against reference implementations
  stereodnn check --mode debug

  # Time kernels on a GPU
  stereodnn benchmark --backend cupy --device cuda

  # Show the effective configuration
  stereodnn config --config configs/release.yaml --override configs/debug.yaml

For more help on a specific command:
  stereodnn <command> --help
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("--version", action="version", version=f"stereodnn v{__version__}")

    subparsers = parser.add_subparsers(
        title="commands", description="Available commands", dest="command", required=True
    )

    commands = [
        InfoCommand(),
        CheckCommand(),
        BenchmarkCommand(),
        ConfigCommand(),
    ]

    for command in commands:
        cmd_parser = subparsers.add_parser(
            command.name,
            help=command.help,
            description=command.description,
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        command.add_arguments(cmd_parser)
        cmd_parser.set_defaults(command_handler=command)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        return args.command_handler.execute(args)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
