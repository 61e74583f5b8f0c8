"""Backup module initialization."""

from .catalog import DCONF_DUMP_FILE, DEFAULT_CATALOG, FLATPAK_LIST_FILE, BackupItem, ItemKind
from .encryption import ArchiveEncryptor, Cipher, GpgCipher
from .executor import BackupExecutor
from .report import ItemResult, RunSummary
from .restore import RestoreExecutor
from .selection import ConfirmationSource, SelectionPolicy, TerminalConfirmation
from .storage import ARCHIVE_SUFFIX, HOME_DIR_NAME, BackupStorage
from .transfer import (
    LocalMirror,
    RsyncMirror,
    TransferAction,
    TransferEngine,
    default_mirror,
)

__all__ = [
    # catalog
    "BackupItem",
    "ItemKind",
    "DEFAULT_CATALOG",
    "FLATPAK_LIST_FILE",
    "DCONF_DUMP_FILE",
    # selection
    "ConfirmationSource",
    "SelectionPolicy",
    "TerminalConfirmation",
    # storage
    "BackupStorage",
    "HOME_DIR_NAME",
    "ARCHIVE_SUFFIX",
    # transfer
    "TransferAction",
    "TransferEngine",
    "RsyncMirror",
    "LocalMirror",
    "default_mirror",
    # encryption
    "ArchiveEncryptor",
    "Cipher",
    "GpgCipher",
    # executors
    "BackupExecutor",
    "RestoreExecutor",
    "ItemResult",
    "RunSummary",
]
