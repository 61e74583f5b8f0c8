"""Tests for backup storage layout and backup root resolution."""

import os
from contextlib import contextmanager
from datetime import datetime
from unittest.mock import MagicMock

import pytest

from keeper.backup.storage import BackupStorage
from keeper.errors import DirectoryCreationError, InvalidBackupError, NoBackupFoundError


def make_backup(base, name, with_home=True):
    root = base / name
    if with_home:
        (root / "home").mkdir(parents=True)
    else:
        root.mkdir(parents=True)
    return root


class TestCreateBackupRoot:
    """Test creation of new backup roots."""

    def test_creates_timestamped_root_with_home(self, base):
        """Test the layout of a new backup root."""
        storage = BackupStorage(base)

        root = storage.create_backup_root(datetime(2024, 6, 1, 12, 0, 5))

        assert root == base / "20240601_120005"
        assert (root / "home").is_dir()

    def test_timestamp_names_sort_chronologically(self, base):
        """Test that the naming scheme sorts like time."""
        storage = BackupStorage(base)
        moments = [
            datetime(2023, 12, 31, 23, 59, 59),
            datetime(2024, 1, 1, 0, 0, 0),
            datetime(2024, 1, 1, 9, 0, 0),
            datetime(2024, 10, 1, 0, 0, 0),
        ]

        names = [storage.backup_root_for(m).name for m in moments]

        assert names == sorted(names)

    def test_unwritable_base_raises(self, tmp_path):
        """Test that a base below a regular file cannot be used."""
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        storage = BackupStorage(blocker / "Backup")

        with pytest.raises(DirectoryCreationError):
            storage.create_backup_root()


class TestListBackups:
    """Test discovery of existing backups."""

    def test_newest_backup_wins(self, base):
        """Test that the most recent timestamp is chosen."""
        make_backup(base, "20240101_000000")
        make_backup(base, "20240601_120000")

        assert BackupStorage(base).get_latest_backup() == base / "20240601_120000"

    def test_name_beats_modification_time(self, base):
        """Test ordering by name even when an older backup was touched last."""
        older = make_backup(base, "20240101_000000")
        make_backup(base, "20240601_120000")
        os.utime(older, (2_000_000_000, 2_000_000_000))

        assert BackupStorage(base).get_latest_backup().name == "20240601_120000"

    def test_non_timestamp_folders_rank_last(self, base):
        """Test that hand-named folders are considered after timestamped ones."""
        make_backup(base, "my-backup")
        make_backup(base, "20240101_000000")

        backups = BackupStorage(base).list_backups()

        assert [b.name for b in backups] == ["20240101_000000", "my-backup"]

    def test_files_are_ignored(self, base):
        """Test that archives are not listed as backup folders."""
        make_backup(base, "20240101_000000")
        (base / "20240601_120000.tar.gz.gpg").write_bytes(b"data")

        storage = BackupStorage(base)

        assert [b.name for b in storage.list_backups()] == ["20240101_000000"]
        assert [a.name for a in storage.list_archives()] == ["20240601_120000.tar.gz.gpg"]

    def test_missing_base(self, tmp_path):
        """Test listing a base directory that does not exist."""
        storage = BackupStorage(tmp_path / "missing")

        assert storage.list_backups() == []
        assert storage.get_latest_backup() is None


class TestValidateBackupRoot:
    """Test backup root validation."""

    def test_home_tree_is_enough(self, base):
        root = make_backup(base, "20240101_000000")
        assert BackupStorage(base).validate_backup_root(root) == root

    def test_artifact_is_enough(self, base):
        """Test that a backup holding only the app list is valid."""
        root = make_backup(base, "20240101_000000", with_home=False)
        (root / "flatpaks.txt").write_text("org.gnome.Calculator\n")

        assert BackupStorage(base).validate_backup_root(root) == root

    def test_empty_folder_is_invalid(self, base):
        root = make_backup(base, "20240101_000000", with_home=False)

        with pytest.raises(InvalidBackupError):
            BackupStorage(base).validate_backup_root(root)

    def test_missing_folder_is_invalid(self, base):
        with pytest.raises(InvalidBackupError):
            BackupStorage(base).validate_backup_root(base / "nope")


class TestOpenBackupRoot:
    """Test restore source precedence."""

    @staticmethod
    def fake_encryptor(decrypted_root):
        encryptor = MagicMock()
        calls = []

        @contextmanager
        def decrypted(archive):
            calls.append(archive)
            yield decrypted_root

        encryptor.decrypted.side_effect = decrypted
        encryptor.calls = calls
        return encryptor

    def test_defaults_to_newest(self, base, make_config):
        """Test resolution without any override."""
        make_backup(base, "20240101_000000")
        make_backup(base, "20240601_120000")

        with BackupStorage(base).open_backup_root(make_config()) as root:
            assert root == base / "20240601_120000"

    def test_explicit_directory_beats_newest(self, base, tmp_path, make_config):
        make_backup(base, "20240601_120000")
        explicit = make_backup(tmp_path / "elsewhere", "20200101_000000")

        config = make_config(explicit_directory=explicit)
        with BackupStorage(base).open_backup_root(config) as root:
            assert root == explicit

    def test_encrypted_source_beats_explicit_directory(self, base, tmp_path, make_config):
        """Test that an encrypted archive takes precedence over everything else."""
        make_backup(base, "20240601_120000")
        explicit = make_backup(tmp_path / "elsewhere", "20200101_000000")
        decrypted_root = make_backup(tmp_path / "decrypted", "20230303_030303")
        archive = tmp_path / "20230303_030303.tar.gz.gpg"
        encryptor = self.fake_encryptor(decrypted_root)

        config = make_config(explicit_directory=explicit, encrypted_source=archive)
        with BackupStorage(base).open_backup_root(config, encryptor) as root:
            assert root == decrypted_root

        assert encryptor.calls == [archive]

    def test_empty_base_raises(self, base, make_config):
        base.mkdir()

        with pytest.raises(NoBackupFoundError):
            with BackupStorage(base).open_backup_root(make_config()):
                pass

    def test_invalid_explicit_directory_raises(self, tmp_path, base, make_config):
        empty = tmp_path / "empty"
        empty.mkdir()

        with pytest.raises(InvalidBackupError):
            with BackupStorage(base).open_backup_root(make_config(explicit_directory=empty)):
                pass


class TestBackupRootCollisions:
    """Test that a backup root is never reused."""

    def test_same_timestamp_twice(self, base):
        storage = BackupStorage(base)
        moment = datetime(2024, 6, 1, 12, 0, 5)
        storage.create_backup_root(moment)

        with pytest.raises(DirectoryCreationError):
            storage.create_backup_root(moment)

    def test_existing_archive_blocks_timestamp(self, base):
        """Test that an encrypted archive of the same name is not overwritten later."""
        base.mkdir()
        (base / "20240601_120005.tar.gz.gpg").write_bytes(b"first run")

        with pytest.raises(DirectoryCreationError):
            BackupStorage(base).create_backup_root(datetime(2024, 6, 1, 12, 0, 5))

        assert (base / "20240601_120005.tar.gz.gpg").read_bytes() == b"first run"
        assert not (base / "20240601_120005").exists()
