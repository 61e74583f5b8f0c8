"""Logging setup for HomeKeeper runs."""

import logging
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "homekeeper"

# Detailed format for log files, which outlive the terminal session
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"


def resolve_level(level: Union[str, int]) -> int:
    """Turn a level name such as ``"info"`` into a logging level number."""
    if isinstance(level, int):
        return level

    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def setup_logging(
    level: Union[str, int] = "INFO",
    log_file: Optional[Path] = None,
    console: Optional[Console] = None
) -> logging.Logger:
    """Route package logs to the terminal and, optionally, a file.

    Args:
        level: Terminal log level
        log_file: File that receives every record down to DEBUG
        console: Console shared with the CLI so log lines and prompts interleave

    Returns:
        The package root logger
    """
    numeric_level = resolve_level(level)
    logger = logging.getLogger(LOGGER_NAME)
    logger.propagate = False

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    terminal = RichHandler(
        console=console or Console(stderr=True),
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    terminal.setLevel(numeric_level)
    terminal.setFormatter(logging.Formatter(fmt="%(message)s", datefmt="[%X]"))
    logger.addHandler(terminal)

    logger.setLevel(numeric_level)
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)
        # The terminal handler still filters at its own level
        logger.setLevel(logging.DEBUG)

    return logger


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """Get a logger parented under the package logger.

    Module loggers live below ``homekeeper`` so that a single
    ``setup_logging`` call configures the whole package.
    """
    if name != LOGGER_NAME and not name.startswith(f"{LOGGER_NAME}."):
        name = f"{LOGGER_NAME}.{name}"
    return logging.getLogger(name)
