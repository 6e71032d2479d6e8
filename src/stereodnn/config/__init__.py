"""Configuration system for stereodnn."""

from .schema import StereoDNNConfig, ExecutionConfig, LaunchConfig, LoggingConfig
from .loader import load_config, save_config, dump_config
from .logging_setup import configure_logging

__all__ = [
    "StereoDNNConfig",
    "ExecutionConfig",
    "LaunchConfig",
    "LoggingConfig",
    "load_config",
    "save_config",
    "dump_config",
    "configure_logging",
]
