"""Utility module initialization."""

from .logging import get_logger, setup_logging
from .paths import expand_path, format_size, path_size
from .timeutil import (
    BACKUP_TIMESTAMP_FORMAT,
    format_duration,
    generate_backup_id,
    parse_backup_id,
)

__all__ = [
    # logging
    "get_logger",
    "setup_logging",
    # paths
    "expand_path",
    "format_size",
    "path_size",
    # timeutil
    "BACKUP_TIMESTAMP_FORMAT",
    "format_duration",
    "generate_backup_id",
    "parse_backup_id",
]
