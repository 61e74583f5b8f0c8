"""Catalog of user state items that can be backed up and restored."""

from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

FLATPAK_LIST_FILE = "flatpaks.txt"
DCONF_DUMP_FILE = "dconf-settings.ini"


class ItemKind(str, Enum):
    """How an item is captured."""

    DIRECTORY = "directory"
    FILE = "file"
    GENERATED_LIST = "generated-list"
    GENERATED_DUMP = "generated-dump"

    @property
    def is_generated(self) -> bool:
        return self in (ItemKind.GENERATED_LIST, ItemKind.GENERATED_DUMP)


class BackupItem(BaseModel):
    """One declared unit of user state."""

    name: str = Field(description="Display name used in prompts and reports")
    kind: ItemKind = Field(description="Item kind")
    relative_path: Optional[str] = Field(
        default=None, description="Path under the home directory (directory and file items)"
    )
    artifact: Optional[str] = Field(
        default=None, description="File name at the backup root (generated items)"
    )

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_location(self) -> "BackupItem":
        if self.kind.is_generated:
            if not self.artifact or self.relative_path:
                raise ValueError(f"{self.name}: generated items need an artifact and no path")
            if "/" in self.artifact:
                raise ValueError(f"{self.name}: artifact must be a flat file name")
        else:
            if not self.relative_path or self.artifact:
                raise ValueError(f"{self.name}: directory and file items need a relative path")
            if self.relative_path.startswith("/") or ".." in self.relative_path.split("/"):
                raise ValueError(f"{self.name}: path must stay inside the home directory")
        return self


DEFAULT_CATALOG: Tuple[BackupItem, ...] = (
    BackupItem(name="Flatpak apps", kind=ItemKind.GENERATED_LIST, artifact=FLATPAK_LIST_FILE),
    BackupItem(name="Configs", kind=ItemKind.DIRECTORY, relative_path=".config"),
    BackupItem(name="Local share", kind=ItemKind.DIRECTORY, relative_path=".local/share"),
    BackupItem(name="Themes", kind=ItemKind.DIRECTORY, relative_path=".themes"),
    BackupItem(name="Icons", kind=ItemKind.DIRECTORY, relative_path=".icons"),
    BackupItem(name="Flatpak app data", kind=ItemKind.DIRECTORY, relative_path=".var/app"),
    BackupItem(name="SSH keys", kind=ItemKind.DIRECTORY, relative_path=".ssh"),
    BackupItem(name="GnuPG keys", kind=ItemKind.DIRECTORY, relative_path=".gnupg"),
    BackupItem(name="Git identity", kind=ItemKind.FILE, relative_path=".gitconfig"),
    BackupItem(name="Desktop settings", kind=ItemKind.GENERATED_DUMP, artifact=DCONF_DUMP_FILE),
)

KNOWN_ARTIFACTS = tuple(item.artifact for item in DEFAULT_CATALOG if item.artifact)
