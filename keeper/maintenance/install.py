"""Baseline package installation tasks."""

from typing import Dict, List, Optional, Tuple

from ..config import InstallConfig
from .tasks import MaintenanceTask

INSTALL_COMMANDS: Dict[str, Tuple[str, ...]] = {
    "dnf": ("sudo", "dnf", "install", "-y"),
    "apt": ("sudo", "apt", "install", "-y"),
    "pacman": ("sudo", "pacman", "-S", "--needed", "--noconfirm"),
}

UPGRADE_COMMANDS: Dict[str, Tuple[str, ...]] = {
    "dnf": ("sudo", "dnf", "upgrade", "-y"),
    "apt": ("sudo", "apt", "full-upgrade", "-y"),
    "pacman": ("sudo", "pacman", "-Syu", "--noconfirm"),
}


def build_install_tasks(
    config: InstallConfig, package_manager: Optional[str]
) -> List[MaintenanceTask]:
    """One task per package category, then an optional system upgrade."""
    if package_manager not in INSTALL_COMMANDS:
        return []

    tasks = []
    for category, packages in config.categories.items():
        if not packages:
            continue
        tasks.append(MaintenanceTask(
            category=category,
            question=f"Install {category} packages ({' '.join(packages)})?",
            command=INSTALL_COMMANDS[package_manager] + tuple(packages),
        ))

    if config.system_update:
        tasks.append(MaintenanceTask(
            category="System update",
            question="Run full system update?",
            command=UPGRADE_COMMANDS[package_manager],
        ))

    return tasks
