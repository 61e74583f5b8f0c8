"""Symmetric encryption of backup roots into single-file archives."""

import os
import shutil
import stat
import subprocess
import tarfile
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Protocol

from ..errors import DecryptionError, EncryptionError, InvalidArchiveError
from ..util.logging import get_logger
from .storage import ARCHIVE_SUFFIX

logger = get_logger(__name__)


def _remove_tree(root: Path) -> None:
    """Delete a tree that may contain read-only directories copied from home."""
    os.chmod(root, stat.S_IMODE(os.lstat(root).st_mode) | stat.S_IRWXU)
    for dirpath, dirnames, _filenames in os.walk(root):
        for name in dirnames:
            path = os.path.join(dirpath, name)
            if not os.path.islink(path):
                os.chmod(path, stat.S_IMODE(os.lstat(path).st_mode) | stat.S_IRWXU)
    shutil.rmtree(root)


def _keep_modes_filter(member: tarfile.TarInfo, dest_path: str) -> tarfile.TarInfo:
    """Reject absolute and escaping paths like the ``tar`` filter, but keep permission bits."""
    checked = tarfile.tar_filter(member, dest_path)
    return checked.replace(mode=member.mode, deep=False)


class Cipher(Protocol):
    """Builds the commands that encrypt stdin to a file and decrypt a file to stdout."""

    def encrypt_command(self, output: Path) -> List[str]: ...

    def decrypt_command(self, archive: Path) -> List[str]: ...


class GpgCipher:
    """GnuPG symmetric encryption. gpg asks for the passphrase itself."""

    def __init__(self, gpg_path: str = "gpg", cipher_algo: str = "AES256"):
        self.gpg_path = gpg_path
        self.cipher_algo = cipher_algo

    def encrypt_command(self, output: Path) -> List[str]:
        return [
            self.gpg_path, "--symmetric",
            "--cipher-algo", self.cipher_algo,
            "--yes",
            "--output", str(output),
        ]

    def decrypt_command(self, archive: Path) -> List[str]:
        return [self.gpg_path, "--decrypt", "--quiet", str(archive)]


class ArchiveEncryptor:
    """Packs a backup root into an encrypted tarball and back."""

    def __init__(self, cipher: Cipher):
        self.cipher = cipher

    def encrypt(self, backup_root: Path) -> Path:
        """Encrypt a backup root and remove the plaintext.

        Args:
            backup_root: Timestamp named backup directory

        Returns:
            Path to ``<timestamp>.tar.gz.gpg`` next to the backup root

        Raises:
            EncryptionError: If the cipher fails; the backup root is kept
        """
        archive = backup_root.parent / f"{backup_root.name}{ARCHIVE_SUFFIX}"
        cmd = self.cipher.encrypt_command(archive)
        logger.info(f"Encrypting {backup_root} -> {archive}")

        try:
            proc = subprocess.Popen(
                cmd, stdin=subprocess.PIPE, stdout=subprocess.DEVNULL, stderr=subprocess.PIPE
            )
        except FileNotFoundError as e:
            raise EncryptionError(f"Encryption tool not found: {cmd[0]}") from e

        write_error = None
        try:
            with tarfile.open(fileobj=proc.stdin, mode="w|gz") as tar:
                tar.add(backup_root, arcname=backup_root.name)
        except OSError as e:
            # Broken pipe from an early cipher exit, or an unreadable source file
            write_error = e
        finally:
            try:
                proc.stdin.close()
            except BrokenPipeError:
                # The cipher already exited; its return code is checked below
                pass

        stderr = proc.stderr.read().decode(errors="replace").strip()
        proc.stderr.close()
        returncode = proc.wait()

        if returncode != 0 or write_error is not None:
            archive.unlink(missing_ok=True)
            detail = stderr or (str(write_error) if write_error else "")
            raise EncryptionError(
                f"Encryption failed (exit {returncode}); plaintext kept at {backup_root}"
                + (f": {detail}" if detail else "")
            )

        try:
            _remove_tree(backup_root)
        except OSError as e:
            # The archive is complete; only the cleanup failed
            logger.warning(f"Archive written to {archive} but plaintext remains at {backup_root}: {e}")
        else:
            logger.debug(f"Removed plaintext backup {backup_root}")
        return archive

    def decrypt(self, archive: Path, workdir: Path) -> Path:
        """Decrypt and unpack an archive into ``workdir``.

        Returns:
            The single top level directory unpacked from the archive

        Raises:
            DecryptionError: Wrong passphrase, missing file or corrupt data
            InvalidArchiveError: The archive does not hold exactly one directory
        """
        if not archive.is_file():
            raise DecryptionError(f"Encrypted archive not found: {archive}")

        cmd = self.cipher.decrypt_command(archive)
        try:
            proc = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        except FileNotFoundError as e:
            raise DecryptionError(f"Decryption tool not found: {cmd[0]}") from e

        read_error = None
        try:
            with tarfile.open(fileobj=proc.stdout, mode="r|gz") as tar:
                tar.extractall(workdir, filter=_keep_modes_filter)
        except (tarfile.TarError, EOFError) as e:
            read_error = e
        finally:
            proc.stdout.close()

        stderr = proc.stderr.read().decode(errors="replace").strip()
        proc.stderr.close()
        returncode = proc.wait()

        if returncode != 0:
            raise DecryptionError(
                f"Decryption of {archive} failed (exit {returncode})" + (f": {stderr}" if stderr else "")
            )
        if read_error is not None:
            raise DecryptionError(f"{archive} is not a valid encrypted backup: {read_error}")

        entries = list(workdir.iterdir())
        if len(entries) != 1 or not entries[0].is_dir():
            raise InvalidArchiveError(
                f"{archive} must contain exactly one backup folder, found {len(entries)} entries"
            )

        logger.debug(f"Decrypted {archive} into {entries[0]}")
        return entries[0]

    @contextmanager
    def decrypted(self, archive: Path) -> Iterator[Path]:
        """Decrypt into a temporary directory that is removed on exit."""
        with tempfile.TemporaryDirectory(prefix="homekeeper-") as tmp:
            yield self.decrypt(Path(archive), Path(tmp))
