"""Backup restore functionality."""

import time
import typing as t
from pathlib import Path

from ..config import RunConfig
from ..util.logging import get_logger
from ..util.timeutil import format_duration
from .catalog import BackupItem
from .executor import CatalogExecutor
from .report import RunSummary
from .storage import BackupStorage
from .transfer import TransferAction

logger = get_logger(__name__)


class RestoreExecutor(CatalogExecutor):
    """Restores catalog items from an existing backup."""

    operation = "restore"
    action = "restore"
    progress = "Restoring"

    def _has_source(self, item: BackupItem, config: RunConfig, root: Path) -> bool:
        return self.engine.has_restore_source(item, root)

    def _transfer(
        self, item: BackupItem, config: RunConfig, root: Path
    ) -> t.List[TransferAction]:
        return self.engine.restore_item(item, root, config.home_directory, config.dry_run)

    def execute(self, config: RunConfig) -> RunSummary:
        """Execute a restore run.

        Raises:
            NoBackupFoundError: If there is no backup to restore from
            InvalidBackupError: If the chosen folder is not a backup
            DecryptionError: If an encrypted source cannot be decrypted
            InvalidArchiveError: If a decrypted archive has an unexpected layout
        """
        storage = BackupStorage(config.base_directory)
        summary = RunSummary(operation=self.operation, dry_run=config.dry_run)
        started = time.monotonic()

        with storage.open_backup_root(config, self.encryptor) as root:
            summary.root = config.encrypted_source or root
            logger.info(f"Restoring into {config.home_directory}")
            self.console.print(f"[*] Restoring from backup folder: {summary.root}", markup=False)
            self._run_items(config, root, summary)

        summary.duration = time.monotonic() - started
        logger.info(
            f"Restore finished in {format_duration(summary.duration)}: {summary.completed} done, "
            f"{summary.skipped} skipped, {summary.failed} failed"
        )
        return summary
