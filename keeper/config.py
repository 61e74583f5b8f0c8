"""Configuration management for HomeKeeper."""

from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from ruamel.yaml import YAML

from .util.logging import resolve_level

DEFAULT_CONFIG_PATH = Path.home() / ".config/homekeeper/config.yaml"


class InstallConfig(BaseModel):
    """Configuration for baseline package installation."""

    categories: Dict[str, List[str]] = Field(
        default={
            "Development": [
                "git", "cargo", "gcc", "gcc-c++", "make", "cmake", "pkg-config",
                "python3", "python3-pip", "java-17-openjdk-devel", "maven",
                "nodejs", "npm", "podman", "podman-compose", "sqlite",
            ],
            "Editors": ["vim", "neovim"],
            "Utilities": [
                "tree", "tmux", "htop", "fzf", "ripgrep", "fd-find", "curl",
                "wget", "unzip", "tar", "bleachbit",
            ],
            "Security": ["gnupg2", "openssl", "keychain"],
            "Desktop": ["gnome-tweaks", "gnome-extensions-app", "ffmpeg", "ImageMagick"],
            "Fonts": ["fonts-firacode", "fonts-jetbrains-mono"],
            "Networking": ["openssh-clients", "traceroute", "nmap"],
        },
        description="Packages to install, grouped by category"
    )
    system_update: bool = Field(default=True, description="Offer a full system upgrade")


class CleanupConfig(BaseModel):
    """Configuration for disk cleanup."""

    bleachbit_cleaners: List[str] = Field(
        default=[
            "bash.history", "bash.tmp",
            "deepscan.backup", "deepscan.ds_store", "deepscan.thumbs_db",
            "deepscan.tmp", "deepscan.vim_swap",
            "discord.cache", "discord.cookies", "discord.history", "discord.vacuum",
            "firefox.backup", "firefox.cache", "firefox.cookies",
            "firefox.crash_reports", "firefox.dom", "firefox.formhistory",
            "firefox.passwords", "firefox.session_restore",
            "firefox.sitepreferences", "firefox.url_history", "firefox.vacuum",
            "system.cache", "system.clipboard", "system.custom",
            "system.desktop_entry", "system.free_disk_space",
            "system.localizations", "system.memory", "system.recent_documents",
            "system.rotated_logs", "system.tmp", "system.trash",
        ],
        description="BleachBit cleaner identifiers"
    )
    journal_vacuum_time: str = Field(default="7d", description="Keep journal entries newer than this")
    kernels_to_keep: int = Field(default=2, ge=1, description="Installed kernels to keep (dnf only)")


class KeeperConfig(BaseModel):
    """Main configuration for HomeKeeper."""

    backup_root: Path = Field(
        default_factory=lambda: Path.home() / "Backup",
        description="Base directory holding timestamped backups"
    )
    home_directory: Path = Field(
        default_factory=Path.home,
        description="Home directory to back up and restore into"
    )
    config_dir: Path = Field(
        default_factory=lambda: Path.home() / ".config/homekeeper",
        description="Configuration directory"
    )

    install: InstallConfig = Field(default_factory=InstallConfig)
    cleanup: CleanupConfig = Field(default_factory=CleanupConfig)

    # External tools
    rsync_path: str = Field(default="rsync", description="Path to rsync binary")
    gpg_path: str = Field(default="gpg", description="Path to gpg binary")
    gpg_cipher_algo: str = Field(default="AES256", description="Symmetric cipher for archives")
    flatpak_path: str = Field(default="flatpak", description="Path to flatpak binary")
    flatpak_remote: str = Field(default="flathub", description="Remote to install Flatpak apps from")
    flatpak_remote_url: str = Field(
        default="https://flathub.org/repo/flathub.flatpakrepo",
        description="Repository file for the Flatpak remote"
    )
    dconf_path: str = Field(default="dconf", description="Path to dconf binary")

    log_level: str = Field(default="INFO", description="Logging level")

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("backup_root", "home_directory", "config_dir", mode="after")
    @classmethod
    def _expand_user(cls, value: Path) -> Path:
        return value.expanduser()

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        resolve_level(value)
        return value.upper()


class RunConfig(BaseModel):
    """Per-invocation settings, fixed for the duration of a run."""

    force_all: bool = False
    dry_run: bool = False
    base_directory: Path
    home_directory: Path
    explicit_directory: Optional[Path] = None
    encrypted_source: Optional[Path] = None
    encrypt_output: bool = False

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_encrypted_source(self) -> "RunConfig":
        if self.encrypted_source is not None and self.encrypt_output:
            raise ValueError("encrypt_output applies to backups, encrypted_source to restores")
        return self

    @classmethod
    def from_config(cls, config: KeeperConfig, **overrides) -> "RunConfig":
        """Build a run configuration from persisted settings plus CLI overrides."""
        values = {
            "base_directory": config.backup_root,
            "home_directory": config.home_directory,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def load_config(config_path: Optional[Path] = None) -> KeeperConfig:
    """Load configuration from file or create default."""

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if config_path.exists():
        yaml = YAML(typ="safe")
        with open(config_path, "r") as f:
            data = yaml.load(f) or {}
        return KeeperConfig(**data)
    else:
        config = KeeperConfig()
        save_config(config, config_path)
        return config


def save_config(config: KeeperConfig, config_path: Optional[Path] = None) -> None:
    """Save configuration to file."""

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    config_path.parent.mkdir(parents=True, exist_ok=True)

    yaml = YAML()
    yaml.default_flow_style = False

    with open(config_path, "w") as f:
        yaml.dump(config.model_dump(mode="json"), f)


def get_config() -> KeeperConfig:
    """Get the global configuration instance."""

    if not hasattr(get_config, "_config"):
        get_config._config = load_config()

    return get_config._config
