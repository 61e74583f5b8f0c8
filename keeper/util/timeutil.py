"""Utility functions for time operations."""

from datetime import datetime
from typing import Optional

# Zero padded so that lexicographic order is chronological order
BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


def generate_backup_id(moment: Optional[datetime] = None) -> str:
    """Generate a backup directory name from a timestamp (current time if None)."""
    if moment is None:
        moment = datetime.now()
    return moment.strftime(BACKUP_TIMESTAMP_FORMAT)


def parse_backup_id(name: str) -> Optional[datetime]:
    """Parse a backup directory name, returning None if it is not a timestamp."""
    try:
        return datetime.strptime(name, BACKUP_TIMESTAMP_FORMAT)
    except ValueError:
        return None


def format_duration(seconds: float) -> str:
    """Format duration in human readable format."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = seconds / 60
        return f"{minutes:.1f}m"
    else:
        hours = seconds / 3600
        return f"{hours:.1f}h"
