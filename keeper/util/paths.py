"""Utility functions for path operations."""

import os
from pathlib import Path

from ..util.logging import get_logger

logger = get_logger(__name__)


def expand_path(path) -> Path:
    """Expand ``~`` and environment variables in a user supplied path."""
    return Path(os.path.expandvars(str(path))).expanduser()


def path_size(path: Path) -> int:
    """Total size in bytes of a file or directory tree (symlinks not followed)."""
    if path.is_symlink() or path.is_file():
        return path.lstat().st_size

    total = 0
    for dirpath, _dirnames, filenames in os.walk(path):
        for name in filenames:
            try:
                total += os.lstat(os.path.join(dirpath, name)).st_size
            except OSError as e:
                logger.debug(f"Could not stat {name} in {dirpath}: {e}")
    return total


def format_size(size_bytes: int) -> str:
    """Format file size in human readable format."""
    if size_bytes == 0:
        return "0 B"

    size_names = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    while size_bytes >= 1024.0 and i < len(size_names) - 1:
        size_bytes /= 1024.0
        i += 1

    return f"{size_bytes:.1f} {size_names[i]}"
