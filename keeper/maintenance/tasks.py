"""Category tagged maintenance tasks and their runner."""

import shlex
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from rich.console import Console

from ..backup.selection import SelectionPolicy
from ..config import RunConfig
from ..errors import SubprocessFailure
from ..system.shell import command_available, run_command, run_interactive
from ..util.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class MaintenanceTask:
    """A confirmable system command.

    ``args_from`` names a query whose whitespace separated output is appended
    to ``command`` at run time; an empty result means there is nothing to do.
    """

    category: str
    question: str
    command: Tuple[str, ...]
    requires: Optional[str] = None
    args_from: Tuple[str, ...] = ()
    args_from_ok_codes: Tuple[int, ...] = (0,)

    def describe(self) -> str:
        text = shlex.join(self.command)
        if self.args_from:
            text += f" $({shlex.join(self.args_from)})"
        return text


@dataclass
class TaskReport:
    """Outcome of a maintenance run."""

    executed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    dry_run: bool = False


class TaskRunner:
    """Confirms and runs maintenance tasks in order."""

    def __init__(self, policy: SelectionPolicy, console: Optional[Console] = None):
        self.policy = policy
        self.console = console or Console()

    def run(self, tasks: Sequence[MaintenanceTask], config: RunConfig) -> TaskReport:
        report = TaskReport(dry_run=config.dry_run)

        for task in tasks:
            if task.requires and not command_available(task.requires):
                logger.debug(f"Skipping '{task.question}': {task.requires} not installed")
                report.skipped.append(task.question)
                continue

            if not self.policy.confirm(task.question, config):
                report.skipped.append(task.question)
                continue

            if config.dry_run:
                self.console.print(f"[dry-run] {task.describe()}", markup=False)
                report.executed.append(task.question)
                continue

            try:
                self._execute(task)
            except SubprocessFailure as e:
                logger.error(f"{task.category}: {e}")
                report.failed.append(task.question)
                continue

            report.executed.append(task.question)

        return report

    def _execute(self, task: MaintenanceTask) -> None:
        command = list(task.command)

        if task.args_from:
            output = run_command(task.args_from, ok_codes=task.args_from_ok_codes)
            extra = output.split()
            if not extra:
                self.console.print(f"[info] {task.category}: nothing to do.", markup=False)
                return
            command.extend(extra)

        self.console.print(f"[*] {task.category}: {shlex.join(command)}", markup=False)
        run_interactive(command)
