"""
Base command class for the stereodnn CLI.

Provides abstract interface and shared functionality for CLI commands.
"""

from abc import ABC, abstractmethod
from argparse import ArgumentParser, ArgumentTypeError, Namespace
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple
import sys


class CLICommand(ABC):
    """
    Abstract base class for CLI commands.

    Subclasses implement specific commands (info, check, benchmark).
    Uses Command pattern for clean separation and testability.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Command name (e.g., 'check')."""
        pass

    @property
    @abstractmethod
    def help(self) -> str:
        """Short help text for command."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Detailed command description."""
        pass

    @abstractmethod
    def add_arguments(self, parser: ArgumentParser) -> None:
        """
        Add command-specific arguments to parser.

        Args:
            parser: ArgumentParser for this command
        """
        pass

    @abstractmethod
    def execute(self, args: Namespace) -> int:
        """
        Execute the command.

        Args:
            args: Parsed command-line arguments

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        pass

    def error(self, message: str, exit_code: int = 1) -> int:
        """Print error message and return exit code."""
        print(f"Error: {message}", file=sys.stderr)
        return exit_code


class ConfigurableCommand(CLICommand):
    """
    Base class for commands that resolve a configuration from the command line.

    --config names the base YAML file, --override adds YAML layers on top
    (e.g. configs/debug.yaml), --mode/--backend/--device are applied last and
    --param supplies ${NAME} placeholder values. Everything is resolved by
    stereodnn.config.load_config before validation, so settings derived from
    others (e.g. sync_after_launch from mode) follow the overridden values.
    """

    def add_config_arguments(self, parser: ArgumentParser) -> None:
        """Add the shared configuration arguments."""
        parser.add_argument(
            "--config", type=Path, default=None, metavar="PATH",
            help="Base YAML configuration file (schema defaults when omitted)"
        )
        parser.add_argument(
            "--override", type=Path, action="append", default=[], metavar="PATH",
            help="YAML file merged over the base configuration (repeatable)"
        )
        parser.add_argument(
            "--param", type=parse_param, action="append", default=[], metavar="NAME=VALUE",
            help="Value for a ${NAME} placeholder in the YAML files (repeatable)"
        )
        parser.add_argument(
            "--mode", choices=["debug", "release"], default=None,
            help="Override execution.mode"
        )
        parser.add_argument(
            "--backend", choices=["torch", "cupy"], default=None,
            help="Override execution.backend"
        )
        parser.add_argument(
            "--device", type=str, default=None,
            help="Override execution.device (e.g. cpu, cuda:0)"
        )

    def config_overrides(self, args: Namespace) -> Dict[str, Any]:
        return {
            "execution.mode": args.mode,
            "execution.backend": args.backend,
            "execution.device": args.device,
        }

    def resolve_config(self, args: Namespace, verbose: bool = False) -> Optional[Any]:
        """Load the configuration described by the parsed command line."""
        return self.load_config(
            args.config,
            self.config_overrides(args),
            override_paths=args.override,
            runtime_params=dict(args.param),
            verbose=verbose,
        )

    def load_config(
        self,
        config_path: Optional[Path],
        overrides: Optional[Dict[str, Any]] = None,
        override_paths: Sequence[Path] = (),
        runtime_params: Optional[Dict[str, Any]] = None,
        verbose: bool = False,
    ) -> Optional[Any]:
        """
        Resolve a configuration, printing the error instead of raising.

        Returns:
            Loaded StereoDNNConfig or None on error

        Example:
            >>> command.load_config(None, {"execution.mode": "debug"})
        """
        from stereodnn.config import load_config

        if verbose:
            for path in [config_path, *override_paths]:
                if path is not None:
                    print(f"Loading configuration from: {path}")

        try:
            return load_config(config_path, override_paths, overrides, runtime_params)
        except (FileNotFoundError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return None


def parse_param(text: str) -> Tuple[str, str]:
    """argparse type for NAME=VALUE."""
    name, sep, value = text.partition("=")
    if not sep or not name:
        raise ArgumentTypeError(f"expected NAME=VALUE, got {text!r}")
    return name, value
