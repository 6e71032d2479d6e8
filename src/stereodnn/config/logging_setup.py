"""Apply LoggingConfig to the root logger (entry points only, never library code)."""

import logging

from .schema import LoggingConfig

_FORMATS = {
    "plain": "%(message)s",
    "structured": "%(asctime)s %(levelname)s %(name)s: %(message)s",
}


def configure_logging(config: LoggingConfig) -> None:
    logging.basicConfig(
        level=getattr(logging, config.level),
        format=_FORMATS[config.format],
        force=True,
    )
