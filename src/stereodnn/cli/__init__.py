"""
stereodnn CLI package.

Provides modular command implementations for the stereodnn CLI.
Commands use the Command pattern for clean separation and testability.
"""

from .base import CLICommand, ConfigurableCommand
from .benchmark import BenchmarkCommand
from .check import CheckCommand
from .config import ConfigCommand
from .info import InfoCommand

__all__ = [
    "CLICommand",
    "ConfigurableCommand",
    "BenchmarkCommand",
    "CheckCommand",
    "ConfigCommand",
    "InfoCommand",
]
