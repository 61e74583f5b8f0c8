"""Maintenance module initialization."""

from .cleanup import build_cleanup_tasks
from .install import build_install_tasks
from .tasks import MaintenanceTask, TaskReport, TaskRunner

__all__ = [
    "MaintenanceTask",
    "TaskReport",
    "TaskRunner",
    "build_cleanup_tasks",
    "build_install_tasks",
]
