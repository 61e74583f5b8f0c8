"""System package manager detection."""

from typing import Optional

from .shell import command_available

SUPPORTED_PACKAGE_MANAGERS = ("dnf", "apt", "pacman")


def detect_package_manager() -> Optional[str]:
    """Return the first supported package manager found on PATH."""
    for manager in SUPPORTED_PACKAGE_MANAGERS:
        if command_available(manager):
            return manager
    return None
