"""Local command execution utilities."""

import shutil
import subprocess
from typing import List, Optional, Sequence

from ..errors import SubprocessFailure
from ..util.logging import get_logger

logger = get_logger(__name__)


def command_available(name: str) -> bool:
    """Check whether an executable is on PATH."""
    return shutil.which(name) is not None


def run_command(
    command: Sequence[str],
    input_text: Optional[str] = None,
    timeout: Optional[int] = None,
    ok_codes: Sequence[int] = (0,),
) -> str:
    """Run a command and return its standard output.

    Raises:
        SubprocessFailure: If the command is missing, times out or exits
            with a code not listed in ``ok_codes``.
    """
    cmd: List[str] = [str(part) for part in command]
    logger.debug(f"Running command: {' '.join(cmd)}")

    try:
        result = subprocess.run(
            cmd,
            input=input_text,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False
        )
    except FileNotFoundError as e:
        raise SubprocessFailure(cmd) from e
    except subprocess.TimeoutExpired as e:
        raise SubprocessFailure(cmd, -1, f"timed out after {timeout}s") from e

    if result.returncode not in ok_codes:
        raise SubprocessFailure(cmd, result.returncode, result.stderr)

    return result.stdout


def run_interactive(command: Sequence[str]) -> None:
    """Run a command attached to the terminal so the operator sees its output.

    Raises:
        SubprocessFailure: If the command is missing or exits non-zero.
    """
    cmd: List[str] = [str(part) for part in command]
    logger.debug(f"Running command: {' '.join(cmd)}")

    try:
        result = subprocess.run(cmd, check=False)
    except FileNotFoundError as e:
        raise SubprocessFailure(cmd) from e

    if result.returncode != 0:
        raise SubprocessFailure(cmd, result.returncode)
