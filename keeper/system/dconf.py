"""dconf settings dump client."""

from ..util.logging import get_logger
from .shell import command_available, run_command

logger = get_logger(__name__)


class DconfStore:
    """Dumps and loads the dconf database below a path."""

    def __init__(self, dconf_path: str = "dconf", root: str = "/"):
        self.dconf_path = dconf_path
        self.root = root

    def is_available(self) -> bool:
        return command_available(self.dconf_path)

    def dump(self) -> str:
        """Return the settings below ``root`` as keyfile text."""
        return run_command([self.dconf_path, "dump", self.root])

    def load(self, text: str) -> None:
        """Load keyfile text produced by ``dump``."""
        logger.debug(f"Loading {len(text)} bytes of dconf settings into {self.root}")
        run_command([self.dconf_path, "load", self.root], input_text=text)
