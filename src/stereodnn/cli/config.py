"""
Config command for the stereodnn CLI.

Resolves a configuration exactly as the other commands do, validates it and
prints or saves the result.
"""

from argparse import ArgumentParser, Namespace
from pathlib import Path

from .base import ConfigurableCommand


class ConfigCommand(ConfigurableCommand):
    """Validate and show the effective configuration."""

    @property
    def name(self) -> str:
        return "config"

    @property
    def help(self) -> str:
        return "Validate and show the effective configuration"

    @property
    def description(self) -> str:
        return """
Resolve base file, override files, placeholders and flags into one validated
configuration and print it as YAML (or write it with --output).

Exit code is 1 if the configuration does not validate.

Examples:
  # Effective debug configuration
  stereodnn config --config configs/release.yaml --override configs/debug.yaml

  # Placeholder from the command line, saved for later runs
  stereodnn config --config base.yaml --param STEREODNN_MODE=debug --output local.yaml
        """

    def add_arguments(self, parser: ArgumentParser) -> None:
        """Add config command arguments."""
        self.add_config_arguments(parser)
        parser.add_argument(
            "--output", type=Path, default=None, metavar="PATH",
            help="Write the resolved configuration here instead of printing it"
        )

    def execute(self, args: Namespace) -> int:
        """Execute the config command."""
        from stereodnn.config import dump_config, save_config

        config = self.resolve_config(args)
        if config is None:
            return 1

        if args.output is None:
            print(dump_config(config), end="")
        else:
            save_config(config, args.output)
            print(f"✓ Configuration saved: {args.output}")
        return 0
