"""Per-item confirmation policy."""

from typing import Optional, Protocol

from rich.console import Console

from ..config import RunConfig

AFFIRMATIVE_ANSWERS = frozenset({"y", "yes"})


class ConfirmationSource(Protocol):
    """Something that can put a question to the operator."""

    def ask(self, prompt: str) -> str:
        """Return the operator's raw answer to ``prompt``."""
        ...


class TerminalConfirmation:
    """Reads answers from the terminal."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def ask(self, prompt: str) -> str:
        try:
            return self.console.input(prompt, markup=False)
        except EOFError:
            return ""


class SelectionPolicy:
    """Decides whether an item or task should be acted upon."""

    def __init__(self, source: ConfirmationSource):
        self.source = source

    def confirm(self, question: str, config: RunConfig) -> bool:
        """Ask a yes/no question defaulting to no, unless running with force-all."""
        if config.force_all:
            return True

        answer = self.source.ask(f"{question} [y/N]: ")
        return answer.strip().lower() in AFFIRMATIVE_ANSWERS

    def should_act(self, item_name: str, config: RunConfig, action: str = "back up") -> bool:
        return self.confirm(f"Do you want to {action} {item_name}?", config)
