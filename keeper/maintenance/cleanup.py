"""Disk space reclamation tasks."""

from typing import List, Optional

from ..config import CleanupConfig
from .tasks import MaintenanceTask


def _bleachbit_tasks(config: CleanupConfig) -> List[MaintenanceTask]:
    cleaners = tuple(config.bleachbit_cleaners)
    return [
        MaintenanceTask(
            category="BleachBit",
            question="Run BleachBit cleanup for user?",
            command=("bleachbit", "--clean") + cleaners,
            requires="bleachbit",
        ),
        MaintenanceTask(
            category="BleachBit",
            question="Run BleachBit cleanup for system (sudo)?",
            command=("sudo", "bleachbit", "--clean") + cleaners,
            requires="bleachbit",
        ),
    ]


def _package_manager_tasks(config: CleanupConfig, package_manager: Optional[str]) -> List[MaintenanceTask]:
    if package_manager == "dnf":
        return [
            MaintenanceTask("Package manager", "Clean dnf cache?", ("sudo", "dnf", "clean", "all")),
            MaintenanceTask("Package manager", "Remove orphaned packages?", ("sudo", "dnf", "autoremove", "-y")),
            MaintenanceTask(
                category="Kernels",
                question=f"Remove old kernels (keep {config.kernels_to_keep} newest)?",
                command=("sudo", "dnf", "remove", "-y"),
                args_from=("dnf", "repoquery", "--installonly", f"--latest-limit=-{config.kernels_to_keep}", "-q"),
            ),
        ]
    if package_manager == "apt":
        return [
            MaintenanceTask("Package manager", "Clean apt cache?", ("sudo", "apt", "clean")),
            MaintenanceTask("Package manager", "Remove unused packages?", ("sudo", "apt", "autoremove", "-y")),
            MaintenanceTask("Kernels", "Purge old kernels?", ("sudo", "apt", "--purge", "autoremove", "-y")),
        ]
    if package_manager == "pacman":
        return [
            MaintenanceTask(
                category="Package manager",
                question="Clean pacman cache (paccache -r)?",
                command=("sudo", "paccache", "-r"),
                requires="paccache",
            ),
            MaintenanceTask(
                category="Package manager",
                question="Remove orphaned packages?",
                command=("sudo", "pacman", "-Rns", "--noconfirm"),
                args_from=("pacman", "-Qdtq"),
                # pacman exits 1 when there are no orphans
                args_from_ok_codes=(0, 1),
            ),
        ]
    return []


def _log_tasks(config: CleanupConfig) -> List[MaintenanceTask]:
    return [
        MaintenanceTask(
            category="Logs",
            question=f"Vacuum journalctl logs older than {config.journal_vacuum_time}?",
            command=("sudo", "journalctl", f"--vacuum-time={config.journal_vacuum_time}"),
            requires="journalctl",
        ),
        MaintenanceTask(
            category="Logs",
            question="Force logrotate?",
            command=("sudo", "logrotate", "--force", "/etc/logrotate.conf"),
            requires="logrotate",
        ),
    ]


def _snapshot_tasks() -> List[MaintenanceTask]:
    return [
        MaintenanceTask("Snapshots", "List Timeshift snapshots?", ("sudo", "timeshift", "--list"), requires="timeshift"),
        MaintenanceTask("Snapshots", "List Snapper snapshots?", ("sudo", "snapper", "list"), requires="snapper"),
    ]


def _container_tasks() -> List[MaintenanceTask]:
    return [
        MaintenanceTask(
            category="Containers",
            question="Prune Docker (remove stopped containers, unused images, networks, build cache)?",
            command=("docker", "system", "prune", "-af"),
            requires="docker",
        ),
        MaintenanceTask(
            category="Containers",
            question="Prune Podman (remove stopped containers, unused images, volumes)?",
            command=("podman", "system", "prune", "-af"),
            requires="podman",
        ),
        MaintenanceTask(
            category="Containers",
            question="Remove unused Flatpak runtimes?",
            command=("flatpak", "uninstall", "--unused", "-y"),
            requires="flatpak",
        ),
    ]


def build_cleanup_tasks(config: CleanupConfig, package_manager: Optional[str]) -> List[MaintenanceTask]:
    """All cleanup tasks, in the order they are offered."""
    return (
        _bleachbit_tasks(config)
        + _package_manager_tasks(config, package_manager)
        + _log_tasks(config)
        + _snapshot_tasks()
        + _container_tasks()
    )
