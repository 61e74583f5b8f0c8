"""Error types raised by HomeKeeper."""

from typing import List, Optional, Sequence


class KeeperError(Exception):
    """Base class for HomeKeeper errors."""
    pass


class DirectoryCreationError(KeeperError):
    """A backup root could not be created."""
    pass


class NoBackupFoundError(KeeperError):
    """The base directory holds no backup to restore from."""
    pass


class InvalidBackupError(KeeperError):
    """A resolved backup root has neither a home tree nor any artifact."""
    pass


class EncryptionError(KeeperError):
    """The cipher failed while writing an encrypted archive."""
    pass


class DecryptionError(KeeperError):
    """The cipher failed or produced an unreadable stream."""
    pass


class InvalidArchiveError(KeeperError):
    """A decrypted archive does not hold exactly one backup directory."""
    pass


class ItemTransferError(KeeperError):
    """Transfer of a single catalog item failed."""

    def __init__(self, item: str, cause: str):
        super().__init__(f"{item}: {cause}")
        self.item = item
        self.cause = cause


class SubprocessFailure(KeeperError):
    """An external command exited non-zero or could not be started."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: Optional[int] = None,
        stderr: str = ""
    ):
        self.command: List[str] = list(command)
        self.returncode = returncode
        self.stderr = stderr.strip() if stderr else ""

        if returncode is None:
            message = f"Command not found: {self.command[0]}"
        else:
            message = f"Command failed ({returncode}): {' '.join(self.command)}"
        if self.stderr:
            message += f"\nError: {self.stderr}"
        super().__init__(message)
