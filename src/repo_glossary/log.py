"""
Logging setup for repo-glossary.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from rich.console import Console
from rich.logging import RichHandler

from repo_glossary.config import LoggingConfig

PACKAGE_LOGGER = "repo_glossary"


def configure_logging(config: LoggingConfig, console: Console | None = None) -> logging.Logger:
    """
    Attach console and rotating file handlers to the package logger.

    Safe to call more than once; previously installed handlers are replaced.

    Args:
        config: Logging section of the settings.
        console: Rich console shared with the CLI output.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(config.level.upper())

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    rich_handler = RichHandler(console=console, show_path=False, rich_tracebacks=True)
    rich_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(rich_handler)

    if config.file:
        config.file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            config.file,
            maxBytes=config.max_file_size_mb * 1024 * 1024,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(config.format))
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger
