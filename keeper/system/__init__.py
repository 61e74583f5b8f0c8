"""System collaborators: subprocesses, Flatpak, dconf and package managers."""

from .dconf import DconfStore
from .flatpak import FlatpakStore
from .packages import SUPPORTED_PACKAGE_MANAGERS, detect_package_manager
from .shell import command_available, run_command, run_interactive

__all__ = [
    "DconfStore",
    "FlatpakStore",
    "SUPPORTED_PACKAGE_MANAGERS",
    "command_available",
    "detect_package_manager",
    "run_command",
    "run_interactive",
]
