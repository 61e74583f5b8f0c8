"""Transfer engine moving catalog items between a home directory and a backup."""

import os
import shutil
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence

from ..errors import ItemTransferError
from ..system.shell import command_available, run_command
from ..util.logging import get_logger
from .catalog import BackupItem, ItemKind
from .storage import HOME_DIR_NAME

logger = get_logger(__name__)

# rsync exit code for "some source files vanished before they could be transferred"
RSYNC_VANISHED = 24


@dataclass(frozen=True)
class TransferAction:
    """A single change made (or planned, in dry-run mode) by a transfer."""

    kind: str
    target: str

    def __str__(self) -> str:
        return f"{self.kind} {self.target}"


class AppStore(Protocol):
    def is_available(self) -> bool: ...

    def list_installed(self) -> List[str]: ...

    def install(self, app_ids: Sequence[str]) -> Dict[str, bool]: ...


class SettingsStore(Protocol):
    def is_available(self) -> bool: ...

    def dump(self) -> str: ...

    def load(self, text: str) -> None: ...


class Mirror(Protocol):
    def mirror(self, src: Path, dst: Path, dry_run: bool) -> List[TransferAction]: ...


class RsyncMirror:
    """Mirrors directories with rsync, keeping permissions, xattrs and ACLs."""

    def __init__(self, rsync_path: str = "rsync"):
        self.rsync_path = rsync_path

    def build_command(self, src: Path, dst: Path, dry_run: bool) -> List[str]:
        cmd = [self.rsync_path, "-aAXH", "--delete", "--itemize-changes"]
        if dry_run:
            cmd.append("--dry-run")
        # Trailing slashes sync the contents of src into dst
        cmd.extend([f"{src}/", f"{dst}/"])
        return cmd

    def mirror(self, src: Path, dst: Path, dry_run: bool) -> List[TransferAction]:
        if not dry_run:
            dst.parent.mkdir(parents=True, exist_ok=True)

        output = run_command(
            self.build_command(src, dst, dry_run),
            ok_codes=(0, RSYNC_VANISHED)
        )
        return self.parse_itemized(output)

    @staticmethod
    def parse_itemized(output: str) -> List[TransferAction]:
        """Turn ``--itemize-changes`` output into actions."""
        actions = []

        for line in output.splitlines():
            if line.startswith("*deleting"):
                actions.append(TransferAction("delete", line[len("*deleting"):].strip()))
                continue

            # YXcstpoguax path
            code, _, name = line.partition(" ")
            if len(code) < 2 or code[0] not in "<>ch." or code[1] not in "fdLDS":
                continue

            name = name.strip()
            if "+++" in code:
                actions.append(TransferAction("create", name))
            else:
                actions.append(TransferAction("update", name))

        return actions


class LocalMirror:
    """Pure Python mirror used when rsync is not installed.

    Files are compared by type, size, mtime and mode. ``shutil.copy2`` carries
    extended attributes (and with them POSIX ACLs) on Linux.
    """

    def mirror(self, src: Path, dst: Path, dry_run: bool) -> List[TransferAction]:
        src_entries = self._scan(src)
        dst_exists = dst.exists() or dst.is_symlink()
        dst_entries = self._scan(dst) if dst_exists and dst.is_dir() else {}
        actions: List[TransferAction] = []

        if dst_exists and not dst.is_dir():
            actions.append(TransferAction("delete", "."))
            if not dry_run:
                dst.unlink()
            dst_exists = False

        if not dst_exists:
            actions.append(TransferAction("create", "./"))
            if not dry_run:
                dst.mkdir(parents=True)
        elif stat.S_IMODE(src.stat().st_mode) != stat.S_IMODE(dst.stat().st_mode):
            actions.append(TransferAction("update", "./"))

        # Children before parents
        for rel in sorted(dst_entries, reverse=True):
            src_st = src_entries.get(rel)
            if src_st is None or self._kind(src_st) != self._kind(dst_entries[rel]):
                actions.append(TransferAction("delete", rel))
                if not dry_run:
                    self._remove(dst / rel)
                dst_entries.pop(rel)

        # Parents before children
        directories = [(src, dst)]
        for rel in sorted(src_entries):
            src_st = src_entries[rel]
            kind = self._kind(src_st)
            source, target = src / rel, dst / rel

            if rel not in dst_entries:
                change = "create"
            elif self._differs(source, src_st, target, dst_entries[rel]):
                change = "update"
            else:
                change = None

            if kind == "dir":
                directories.append((source, target))
                if change is not None:
                    actions.append(TransferAction(change, f"{rel}/"))
                    if not dry_run and change == "create":
                        target.mkdir()
                continue

            if change is None:
                continue

            actions.append(TransferAction(change, rel))
            if dry_run:
                continue

            if change == "update":
                target.unlink()
            if kind == "link":
                os.symlink(os.readlink(source), target)
            else:
                shutil.copy2(source, target, follow_symlinks=False)
            self._copy_owner(src_st, target)

        if not dry_run:
            # Deepest first so read-only directories are locked after their contents
            for source, target in reversed(directories):
                shutil.copystat(source, target)
                self._copy_owner(os.lstat(source), target)

        return actions

    def _scan(self, root: Path) -> Dict[str, os.stat_result]:
        entries = {}
        for dirpath, dirnames, filenames in os.walk(root):
            base = Path(dirpath)
            for name in dirnames + filenames:
                path = base / name
                st = os.lstat(path)
                if self._kind(st) is None:
                    logger.debug(f"Skipping special file {path}")
                    continue
                entries[path.relative_to(root).as_posix()] = st
        return entries

    @staticmethod
    def _kind(st: os.stat_result) -> Optional[str]:
        if stat.S_ISLNK(st.st_mode):
            return "link"
        if stat.S_ISDIR(st.st_mode):
            return "dir"
        if stat.S_ISREG(st.st_mode):
            return "file"
        return None

    def _differs(self, source: Path, src_st, target: Path, dst_st) -> bool:
        kind = self._kind(src_st)
        if kind == "link":
            return os.readlink(source) != os.readlink(target)
        if stat.S_IMODE(src_st.st_mode) != stat.S_IMODE(dst_st.st_mode):
            return True
        if kind == "dir":
            return False
        return (
            src_st.st_size != dst_st.st_size
            or int(src_st.st_mtime) != int(dst_st.st_mtime)
        )

    @staticmethod
    def _remove(path: Path) -> None:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        elif path.exists() or path.is_symlink():
            path.unlink()

    @staticmethod
    def _copy_owner(src_st: os.stat_result, target: Path) -> None:
        # Only root may hand files to another owner
        if os.geteuid() == 0:
            os.lchown(target, src_st.st_uid, src_st.st_gid)


def _read_artifact(src_file: Path) -> str:
    try:
        return src_file.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ItemTransferError(src_file.name, f"not valid UTF-8 text ({e.reason} at byte {e.start})") from e


def default_mirror(rsync_path: str = "rsync") -> Mirror:
    """Use rsync when it is installed, the pure Python mirror otherwise."""
    if command_available(rsync_path):
        return RsyncMirror(rsync_path)
    logger.warning("rsync not found, falling back to built-in mirroring (no ACL support)")
    return LocalMirror()


class TransferEngine:
    """Performs the copy behind each catalog item kind."""

    def __init__(self, mirror: Mirror, app_store: AppStore, settings_store: SettingsStore):
        self.mirror = mirror
        self.app_store = app_store
        self.settings_store = settings_store

    # Primitive transfers

    def mirror_directory(self, src: Path, dst: Path, dry_run: bool) -> List[TransferAction]:
        """Make ``dst`` an exact copy of ``src``, removing extra files."""
        logger.debug(f"Mirroring {src} -> {dst}{' (dry-run)' if dry_run else ''}")
        return self.mirror.mirror(src, dst, dry_run)

    def copy_file(self, src: Path, dst: Path, dry_run: bool) -> List[TransferAction]:
        """Copy a single file with its metadata."""
        src_st = src.stat()
        if dst.is_file():
            dst_st = dst.stat()
            if (
                dst_st.st_size == src_st.st_size
                and int(dst_st.st_mtime) == int(src_st.st_mtime)
                and stat.S_IMODE(dst_st.st_mode) == stat.S_IMODE(src_st.st_mode)
            ):
                return []
            action = TransferAction("update", str(dst))
        else:
            action = TransferAction("copy", str(dst))

        if not dry_run:
            dst.parent.mkdir(parents=True, exist_ok=True)
            if dst.exists() or dst.is_symlink():
                # The existing copy may be read-only
                dst.unlink()
            shutil.copy2(src, dst)

        return [action]

    def export_list(self, dst_file: Path, dry_run: bool) -> List[TransferAction]:
        """Write the installed application identifiers to ``dst_file``."""
        if dry_run:
            return [TransferAction("export", str(dst_file))]

        app_ids = self.app_store.list_installed()
        dst_file.parent.mkdir(parents=True, exist_ok=True)
        dst_file.write_text("".join(f"{app_id}\n" for app_id in app_ids), encoding="utf-8")
        logger.debug(f"Exported {len(app_ids)} application identifiers")
        return [TransferAction("export", str(dst_file))]

    def import_list(self, src_file: Path, dry_run: bool) -> List[TransferAction]:
        """Install every application listed in ``src_file``."""
        if not src_file.is_file():
            return []

        app_ids = [line.strip() for line in _read_artifact(src_file).splitlines() if line.strip()]
        if not app_ids:
            return []

        if dry_run:
            return [TransferAction("install", app_id) for app_id in app_ids]

        results = self.app_store.install(app_ids)
        failed = [app_id for app_id in app_ids if not results.get(app_id, False)]
        if failed:
            raise ItemTransferError(
                src_file.name,
                f"{len(failed)} of {len(app_ids)} applications failed to install: {', '.join(failed)}"
            )
        return [TransferAction("install", app_id) for app_id in app_ids]

    def export_dump(self, dst_file: Path, dry_run: bool) -> List[TransferAction]:
        """Write the settings dump to ``dst_file``."""
        if dry_run:
            return [TransferAction("export", str(dst_file))]

        text = self.settings_store.dump()
        dst_file.parent.mkdir(parents=True, exist_ok=True)
        dst_file.write_text(text, encoding="utf-8")
        return [TransferAction("export", str(dst_file))]

    def import_dump(self, src_file: Path, dry_run: bool) -> List[TransferAction]:
        """Load a settings dump written by ``export_dump``."""
        if not src_file.is_file():
            return []

        text = _read_artifact(src_file)
        if not text.strip():
            return []

        if not dry_run:
            self.settings_store.load(text)
        return [TransferAction("load", str(src_file))]

    # Catalog item dispatch

    def has_backup_source(self, item: BackupItem, home: Path) -> bool:
        if item.kind == ItemKind.DIRECTORY:
            return (home / item.relative_path).is_dir()
        if item.kind == ItemKind.FILE:
            return (home / item.relative_path).is_file()
        if item.kind == ItemKind.GENERATED_LIST:
            return self.app_store.is_available()
        return self.settings_store.is_available()

    def has_restore_source(self, item: BackupItem, backup_root: Path) -> bool:
        if item.kind == ItemKind.DIRECTORY:
            return (backup_root / HOME_DIR_NAME / item.relative_path).is_dir()
        if item.kind == ItemKind.FILE:
            return (backup_root / HOME_DIR_NAME / item.relative_path).is_file()
        return (backup_root / item.artifact).is_file()

    def backup_item(
        self, item: BackupItem, home: Path, backup_root: Path, dry_run: bool
    ) -> List[TransferAction]:
        if item.kind == ItemKind.GENERATED_LIST:
            return self.export_list(backup_root / item.artifact, dry_run)
        if item.kind == ItemKind.GENERATED_DUMP:
            return self.export_dump(backup_root / item.artifact, dry_run)

        src = home / item.relative_path
        dst = backup_root / HOME_DIR_NAME / item.relative_path
        if item.kind == ItemKind.DIRECTORY:
            return self.mirror_directory(src, dst, dry_run)
        return self.copy_file(src, dst, dry_run)

    def restore_item(
        self, item: BackupItem, backup_root: Path, home: Path, dry_run: bool
    ) -> List[TransferAction]:
        if item.kind == ItemKind.GENERATED_LIST:
            return self.import_list(backup_root / item.artifact, dry_run)
        if item.kind == ItemKind.GENERATED_DUMP:
            return self.import_dump(backup_root / item.artifact, dry_run)

        src = backup_root / HOME_DIR_NAME / item.relative_path
        dst = home / item.relative_path
        if item.kind == ItemKind.DIRECTORY:
            return self.mirror_directory(src, dst, dry_run)
        return self.copy_file(src, dst, dry_run)
