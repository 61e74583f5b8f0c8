"""Flatpak application store client."""

from typing import Dict, List, Sequence

from tenacity import retry, stop_after_attempt, wait_exponential
from tqdm import tqdm

from ..errors import SubprocessFailure
from ..util.logging import get_logger
from .shell import command_available, run_command

logger = get_logger(__name__)


class FlatpakStore:
    """Lists and installs Flatpak applications."""

    def __init__(
        self,
        flatpak_path: str = "flatpak",
        remote: str = "flathub",
        remote_url: str = "https://flathub.org/repo/flathub.flatpakrepo",
    ):
        self.flatpak_path = flatpak_path
        self.remote = remote
        self.remote_url = remote_url

    def is_available(self) -> bool:
        """Check if the flatpak binary is installed."""
        return command_available(self.flatpak_path)

    def list_installed(self) -> List[str]:
        """List installed application identifiers."""
        output = run_command([self.flatpak_path, "list", "--app", "--columns=application"])

        apps = []
        for line in output.splitlines():
            app_id = line.strip()
            # Older flatpak versions print a header row
            if app_id and app_id != "Application ID":
                apps.append(app_id)

        logger.debug(f"Found {len(apps)} Flatpak applications")
        return apps

    def ensure_remote(self) -> None:
        """Add the configured remote if it is not registered yet."""
        logger.info(f"Enabling Flatpak remote {self.remote}")
        run_command([
            self.flatpak_path, "remote-add", "--if-not-exists", self.remote, self.remote_url
        ])

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=1, min=1, max=10), reraise=True)
    def _install_one(self, app_id: str) -> None:
        run_command(
            [self.flatpak_path, "install", "-y", "--noninteractive", self.remote, app_id],
            timeout=1800
        )

    def install(self, app_ids: Sequence[str]) -> Dict[str, bool]:
        """Install applications, returning per-identifier success."""
        results: Dict[str, bool] = {}
        if not app_ids:
            return results

        self.ensure_remote()

        with tqdm(total=len(app_ids), desc="Installing apps", unit="app") as pbar:
            for app_id in app_ids:
                pbar.set_postfix_str(app_id)
                try:
                    self._install_one(app_id)
                    results[app_id] = True
                except SubprocessFailure as e:
                    logger.error(f"Failed to install {app_id}: {e}")
                    results[app_id] = False
                pbar.update(1)

        installed = sum(1 for ok in results.values() if ok)
        logger.info(f"Flatpak install completed: {installed}/{len(app_ids)} applications")
        return results
