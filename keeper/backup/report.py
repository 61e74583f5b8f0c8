"""Per-item results and run summaries."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .transfer import TransferAction

DONE = "done"
SKIPPED = "skipped"
DECLINED = "declined"
FAILED = "failed"


@dataclass
class ItemResult:
    """Outcome of one catalog item in a run."""

    name: str
    status: str
    actions: List[TransferAction] = field(default_factory=list)
    error: str = ""


@dataclass
class RunSummary:
    """Outcome of a backup or restore run."""

    operation: str
    dry_run: bool
    root: Optional[Path] = None
    archive: Optional[Path] = None
    duration: float = 0.0
    results: List[ItemResult] = field(default_factory=list)

    def _count(self, status: str) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def completed(self) -> int:
        return self._count(DONE)

    @property
    def failed(self) -> int:
        return self._count(FAILED)

    @property
    def skipped(self) -> int:
        return self._count(SKIPPED) + self._count(DECLINED)

    @property
    def failures(self) -> List[ItemResult]:
        return [r for r in self.results if r.status == FAILED]

    @property
    def actions(self) -> List[TransferAction]:
        return [action for r in self.results for action in r.actions]

    def headline(self) -> str:
        """One line description of the run for the operator."""
        verb = "Backup" if self.operation == "backup" else "Restore"
        location = self.archive or self.root
        text = f"{verb} completed"
        if location is not None:
            text += f" ({location})"
        text += f": {self.completed} item(s) processed, {self.skipped} skipped"
        if self.failed:
            text += f", {self.failed} failed"
        return text
