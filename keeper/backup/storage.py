"""Backup storage layout management."""

import typing as t
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from ..config import RunConfig
from ..errors import DirectoryCreationError, InvalidBackupError, NoBackupFoundError
from ..util.logging import get_logger
from ..util.timeutil import generate_backup_id, parse_backup_id
from .catalog import KNOWN_ARTIFACTS

logger = get_logger(__name__)

HOME_DIR_NAME = "home"
ARCHIVE_SUFFIX = ".tar.gz.gpg"


class BackupStorage:
    """Manages backup storage layout and organization."""

    def __init__(self, base_path: Path) -> None:
        """Initialize backup storage.

        Args:
            base_path: Base directory for all backups
        """
        self.base_path = Path(base_path)

    def backup_root_for(self, timestamp: t.Optional[datetime] = None) -> Path:
        """Path of the backup root for a timestamp, without creating it."""
        return self.base_path / generate_backup_id(timestamp)

    def create_backup_root(self, timestamp: t.Optional[datetime] = None) -> Path:
        """Create a new timestamped backup root with an empty home tree.

        Args:
            timestamp: Backup timestamp (uses current time if None)

        Returns:
            Path to the backup root

        Raises:
            DirectoryCreationError: If the directories cannot be created
        """
        root = self.backup_root_for(timestamp)

        if root.exists() or self.archive_path_for(root).exists():
            # A second run in the same second would merge into, or encrypt over, the first
            raise DirectoryCreationError(f"Backup {root.name} already exists in {self.base_path}")

        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
            root.mkdir()
            self.home_dir(root).mkdir()
        except OSError as e:
            raise DirectoryCreationError(f"Cannot create backup folder {root}: {e}") from e

        logger.debug(f"Created backup root {root}")
        return root

    def list_backups(self) -> t.List[Path]:
        """List candidate backup roots, newest first.

        Timestamp named directories rank above anything else and are ordered
        by name; other directories are ordered by modification time.
        """
        if not self.base_path.is_dir():
            return []

        def sort_key(path: Path) -> t.Tuple[int, t.Union[str, float]]:
            if parse_backup_id(path.name) is not None:
                return (1, path.name)
            return (0, path.stat().st_mtime)

        backup_dirs = [d for d in self.base_path.iterdir() if d.is_dir()]
        return sorted(backup_dirs, key=sort_key, reverse=True)

    def get_latest_backup(self) -> t.Optional[Path]:
        """Get the most recent backup root or None if there is none."""
        backups = self.list_backups()
        return backups[0] if backups else None

    def list_archives(self) -> t.List[Path]:
        """List encrypted archives in the base directory, newest first."""
        if not self.base_path.is_dir():
            return []

        archives = [
            f for f in self.base_path.iterdir()
            if f.is_file() and f.name.endswith(ARCHIVE_SUFFIX)
        ]
        return sorted(archives, key=lambda f: f.name, reverse=True)

    def home_dir(self, backup_root: Path) -> Path:
        """Get path to the mirrored home tree of a backup."""
        return backup_root / HOME_DIR_NAME

    def archive_path_for(self, backup_root: Path) -> Path:
        """Get path of the encrypted archive written next to a backup root."""
        return backup_root.parent / f"{backup_root.name}{ARCHIVE_SUFFIX}"

    def validate_backup_root(self, backup_root: Path) -> Path:
        """Check that a directory looks like a backup root.

        Raises:
            InvalidBackupError: If it holds neither a home tree nor an artifact
        """
        if not backup_root.is_dir():
            raise InvalidBackupError(f"Backup folder not found: {backup_root}")

        has_home = self.home_dir(backup_root).is_dir()
        has_artifact = any((backup_root / name).is_file() for name in KNOWN_ARTIFACTS)
        if not (has_home or has_artifact):
            raise InvalidBackupError(
                f"{backup_root} contains neither a '{HOME_DIR_NAME}' folder nor any known artifact"
            )
        return backup_root

    @contextmanager
    def open_backup_root(self, config: RunConfig, encryptor=None) -> t.Iterator[Path]:
        """Resolve the backup root to restore from.

        An encrypted source file wins over an explicit directory, which wins
        over the newest backup under the base directory. Decrypted plaintext
        is removed when the context exits.

        Raises:
            NoBackupFoundError: If no override is given and the base is empty
            InvalidBackupError: If the resolved directory is not a backup
        """
        if config.encrypted_source is not None:
            if encryptor is None:
                raise ValueError("An encryptor is required to open an encrypted backup")
            if config.explicit_directory is not None:
                logger.warning(
                    f"Ignoring {config.explicit_directory}: encrypted source takes precedence"
                )
            logger.info(f"Decrypting {config.encrypted_source}")
            with encryptor.decrypted(config.encrypted_source) as root:
                yield self.validate_backup_root(root)
            return

        if config.explicit_directory is not None:
            yield self.validate_backup_root(Path(config.explicit_directory))
            return

        latest = self.get_latest_backup()
        if latest is None:
            raise NoBackupFoundError(f"No backups found in {self.base_path}")
        yield self.validate_backup_root(latest)
