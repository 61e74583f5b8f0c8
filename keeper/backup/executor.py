"""Backup execution engine."""

import time
import typing as t
from abc import ABC, abstractmethod
from pathlib import Path

from rich.console import Console

from ..config import RunConfig
from ..errors import ItemTransferError, KeeperError
from ..util.logging import get_logger
from ..util.timeutil import format_duration
from .catalog import DEFAULT_CATALOG, BackupItem
from .encryption import ArchiveEncryptor
from .report import DECLINED, DONE, FAILED, SKIPPED, ItemResult, RunSummary
from .selection import SelectionPolicy
from .storage import BackupStorage
from .transfer import TransferAction, TransferEngine

logger = get_logger(__name__)


class CatalogExecutor(ABC):
    """Walks the catalog in order, gating each item through the selection policy.

    Subclasses say where an item comes from and how it is moved.
    """

    operation = ""
    action = ""
    progress = ""

    def __init__(
        self,
        engine: TransferEngine,
        policy: SelectionPolicy,
        encryptor: t.Optional[ArchiveEncryptor] = None,
        catalog: t.Sequence[BackupItem] = DEFAULT_CATALOG,
        console: t.Optional[Console] = None,
    ) -> None:
        self.engine = engine
        self.policy = policy
        self.encryptor = encryptor
        self.catalog = tuple(catalog)
        self.console = console or Console()

    @abstractmethod
    def _has_source(self, item: BackupItem, config: RunConfig, root: Path) -> bool:
        """Whether the item has anything to transfer in this direction."""

    @abstractmethod
    def _transfer(
        self, item: BackupItem, config: RunConfig, root: Path
    ) -> t.List[TransferAction]:
        """Move one item, returning what was (or would be) changed."""

    def _run_items(self, config: RunConfig, root: Path, summary: RunSummary) -> None:
        for item in self.catalog:
            summary.results.append(self._run_item(item, config, root))

    def _run_item(self, item: BackupItem, config: RunConfig, root: Path) -> ItemResult:
        if not self._has_source(item, config, root):
            logger.debug(f"Nothing to {self.action} for {item.name}")
            return ItemResult(item.name, SKIPPED)

        if not self.policy.should_act(item.name, config, self.action):
            return ItemResult(item.name, DECLINED)

        self.console.print(f"[*] {self.progress} {item.name}...", markup=False)
        try:
            actions = self._transfer(item, config, root)
        except ItemTransferError as e:
            logger.error(f"{item.name}: {e.cause}")
            return ItemResult(item.name, FAILED, error=e.cause)
        except (KeeperError, OSError) as e:
            logger.error(f"{item.name}: {e}")
            return ItemResult(item.name, FAILED, error=str(e))

        for action in actions:
            if config.dry_run:
                self.console.print(f"[dry-run] {action}", markup=False)
            else:
                logger.debug(f"{item.name}: {action}")

        return ItemResult(item.name, DONE, actions=actions)


class BackupExecutor(CatalogExecutor):
    """Captures catalog items into a new timestamped backup."""

    operation = "backup"
    action = "back up"
    progress = "Backing up"

    def _has_source(self, item: BackupItem, config: RunConfig, root: Path) -> bool:
        return self.engine.has_backup_source(item, config.home_directory)

    def _transfer(
        self, item: BackupItem, config: RunConfig, root: Path
    ) -> t.List[TransferAction]:
        return self.engine.backup_item(item, config.home_directory, root, config.dry_run)

    def execute(self, config: RunConfig) -> RunSummary:
        """Execute a backup run.

        Args:
            config: Run configuration

        Returns:
            RunSummary describing every catalog item

        Raises:
            DirectoryCreationError: If the backup root cannot be created
            EncryptionError: If encrypting the finished backup fails
        """
        storage = BackupStorage(config.base_directory)
        started = time.monotonic()

        if config.dry_run:
            root = storage.backup_root_for()
        else:
            root = storage.create_backup_root()

        logger.info(f"Starting backup of {config.home_directory}")
        self.console.print(f"[*] Backup folder: {root}", markup=False)

        summary = RunSummary(operation=self.operation, dry_run=config.dry_run, root=root)
        self._run_items(config, root, summary)

        if config.encrypt_output:
            if self.encryptor is None:
                raise ValueError("An encryptor is required to encrypt the backup")
            if config.dry_run:
                self.console.print(
                    f"[dry-run] encrypt {storage.archive_path_for(root)}", markup=False
                )
            else:
                summary.archive = self.encryptor.encrypt(root)

        summary.duration = time.monotonic() - started
        logger.info(
            f"Backup finished in {format_duration(summary.duration)}: {summary.completed} done, "
            f"{summary.skipped} skipped, {summary.failed} failed"
        )
        return summary
