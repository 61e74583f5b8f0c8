"""Shared fixtures and test doubles for HomeKeeper tests."""

import io
from pathlib import Path
from typing import Dict, List, Sequence

import pytest
from rich.console import Console

from keeper.backup.transfer import LocalMirror, TransferEngine
from keeper.config import RunConfig


class ScriptedConfirmation:
    """Confirmation source returning canned answers and recording prompts."""

    def __init__(self, answers: Sequence[str] = ()):
        self.answers = list(answers)
        self.prompts: List[str] = []

    def ask(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.answers.pop(0) if self.answers else ""


class FakeAppStore:
    """In-memory application store."""

    def __init__(self, installed: Sequence[str] = (), available: bool = True, failing: Sequence[str] = ()):
        self.installed = list(installed)
        self.available = available
        self.failing = set(failing)
        self.install_calls: List[List[str]] = []

    def is_available(self) -> bool:
        return self.available

    def list_installed(self) -> List[str]:
        return list(self.installed)

    def install(self, app_ids: Sequence[str]) -> Dict[str, bool]:
        self.install_calls.append(list(app_ids))
        return {app_id: app_id not in self.failing for app_id in app_ids}


class FakeSettingsStore:
    """In-memory settings dump tool."""

    def __init__(self, text: str = "", available: bool = True):
        self.text = text
        self.available = available
        self.loaded: List[str] = []

    def is_available(self) -> bool:
        return self.available

    def dump(self) -> str:
        return self.text

    def load(self, text: str) -> None:
        self.loaded.append(text)


class IdentityCipher:
    """Cipher that stores the tarball as-is, using coreutils."""

    def encrypt_command(self, output: Path) -> List[str]:
        return ["tee", str(output)]

    def decrypt_command(self, archive: Path) -> List[str]:
        return ["cat", str(archive)]


class FailingCipher:
    """Cipher whose process always fails, like gpg with a wrong passphrase."""

    def encrypt_command(self, output: Path) -> List[str]:
        return ["sh", "-c", "cat >/dev/null; echo 'gpg: cancelled by user' >&2; exit 2"]

    def decrypt_command(self, archive: Path) -> List[str]:
        return ["sh", "-c", "echo 'gpg: decryption failed: Bad session key' >&2; exit 2"]


def snapshot_tree(root: Path) -> Dict[str, bytes]:
    """Map of relative file path to content for every regular file under root."""
    return {
        path.relative_to(root).as_posix(): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file() and not path.is_symlink()
    }


@pytest.fixture
def home(tmp_path) -> Path:
    """A small home directory with a few catalog items."""
    home = tmp_path / "home"
    (home / ".config" / "app").mkdir(parents=True)
    (home / ".config" / "app" / "settings.conf").write_text("theme=dark\n")
    (home / ".config" / "editor.ini").write_text("[editor]\ntabs=4\n")
    (home / ".local" / "share" / "fonts").mkdir(parents=True)
    (home / ".local" / "share" / "fonts" / "mono.ttf").write_bytes(b"\x00\x01fontdata")
    (home / ".ssh").mkdir(mode=0o700)
    key = home / ".ssh" / "id_ed25519"
    key.write_text("PRIVATE KEY\n")
    key.chmod(0o600)
    (home / ".gitconfig").write_text("[user]\n\tname = Someone\n")
    return home


@pytest.fixture
def base(tmp_path) -> Path:
    return tmp_path / "Backup"


@pytest.fixture
def make_config(home, base):
    """Factory for run configurations rooted at the test home and base."""

    def factory(**overrides) -> RunConfig:
        values = {"base_directory": base, "home_directory": home}
        values.update(overrides)
        return RunConfig(**values)

    return factory


@pytest.fixture
def app_store() -> FakeAppStore:
    return FakeAppStore(["org.gnome.Calculator", "org.mozilla.firefox"])


@pytest.fixture
def settings_store() -> FakeSettingsStore:
    return FakeSettingsStore("[org/gnome/desktop/interface]\ncolor-scheme='prefer-dark'\n")


@pytest.fixture
def engine(app_store, settings_store) -> TransferEngine:
    return TransferEngine(LocalMirror(), app_store, settings_store)


@pytest.fixture
def quiet_console() -> Console:
    return Console(file=io.StringIO(), width=200)
