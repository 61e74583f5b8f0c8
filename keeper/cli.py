"""Command Line Interface for HomeKeeper."""

import sys
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.table import Table

from .backup import (
    ArchiveEncryptor,
    BackupExecutor,
    BackupStorage,
    GpgCipher,
    RestoreExecutor,
    RunSummary,
    SelectionPolicy,
    TerminalConfirmation,
    TransferEngine,
    default_mirror,
)
from .config import KeeperConfig, RunConfig, get_config, load_config
from .errors import KeeperError
from .maintenance import TaskReport, TaskRunner, build_cleanup_tasks, build_install_tasks
from .system import DconfStore, FlatpakStore, detect_package_manager
from .util import expand_path, format_size, get_logger, path_size, setup_logging

console = Console()
logger = get_logger(__name__)


def setup_cli_logging(verbose: bool = False, log_file: Optional[Path] = None, default_level: str = "INFO"):
    """Setup logging for CLI."""
    level = "DEBUG" if verbose else default_level
    setup_logging(level=level, log_file=log_file, console=console)


def _build_engine(config: KeeperConfig) -> TransferEngine:
    return TransferEngine(
        mirror=default_mirror(config.rsync_path),
        app_store=FlatpakStore(config.flatpak_path, config.flatpak_remote, config.flatpak_remote_url),
        settings_store=DconfStore(config.dconf_path),
    )


def _build_encryptor(config: KeeperConfig) -> ArchiveEncryptor:
    return ArchiveEncryptor(GpgCipher(config.gpg_path, config.gpg_cipher_algo))


def _build_policy() -> SelectionPolicy:
    return SelectionPolicy(TerminalConfirmation(console))


def _fail(message: str) -> None:
    console.print(f"Error: {message}", style="red", markup=False)
    sys.exit(1)


def _print_summary(summary: RunSummary) -> None:
    style = "bold yellow" if summary.failed else "bold green"
    console.print(f"[*] {summary.headline()}", style=style, markup=False)

    for result in summary.failures:
        console.print(f"  [!] {result.name}: {result.error}", style="yellow", markup=False)

    if summary.dry_run:
        console.print("[note] This was a dry-run. No changes were made.", markup=False)


def _print_task_report(report: TaskReport, operation: str) -> None:
    console.print(f"[*] {operation} complete.", style="bold green", markup=False)
    if report.failed:
        console.print(f"[!] {len(report.failed)} task(s) failed:", style="yellow", markup=False)
        for question in report.failed:
            console.print(f"  {question}", markup=False)
    if report.dry_run:
        console.print(
            "[note] This was a dry-run. No destructive changes were performed.", markup=False
        )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--config", "-c", type=click.Path(exists=True, path_type=Path), help="Configuration file path")
@click.option("--log-file", type=click.Path(path_type=Path), help="Also write a detailed log to this file")
@click.pass_context
def cli(ctx, verbose: bool, config: Optional[Path], log_file: Optional[Path]):
    """HomeKeeper - back up, restore and maintain a Linux workstation."""
    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(config) if config else get_config()

    setup_cli_logging(verbose, log_file, ctx.obj["config"].log_level)


@cli.command("backup")
@click.option("--all", "-a", "force_all", is_flag=True, help="Back up everything without prompts")
@click.option("--encrypt", "-e", "encrypt_output", is_flag=True, help="Encrypt the finished backup with gpg")
@click.option("--dir", "-d", "base_directory", type=click.Path(path_type=Path), help="Base backup folder")
@click.option("--dry-run", is_flag=True, help="Show what would be backed up without writing anything")
@click.pass_context
def backup_cmd(ctx, force_all: bool, encrypt_output: bool, base_directory: Optional[Path], dry_run: bool):
    """Back up home directory state into a new timestamped folder."""
    config: KeeperConfig = ctx.obj["config"]
    run_config = RunConfig.from_config(
        config,
        force_all=force_all,
        dry_run=dry_run,
        encrypt_output=encrypt_output,
        base_directory=expand_path(base_directory) if base_directory else None,
    )

    executor = BackupExecutor(
        _build_engine(config), _build_policy(), _build_encryptor(config), console=console
    )
    try:
        summary = executor.execute(run_config)
    except KeeperError as e:
        logger.debug("Run aborted", exc_info=True)
        _fail(str(e))
        return

    _print_summary(summary)


@cli.command("restore")
@click.option("--all", "-a", "force_all", is_flag=True, help="Restore everything without prompts")
@click.option("--dir", "-d", "base_directory", type=click.Path(path_type=Path), help="Base backup folder")
@click.option("--from", "-f", "explicit_directory", type=click.Path(path_type=Path),
              help="Restore from this specific backup folder")
@click.option("--encrypted", "-E", "encrypted_source", type=click.Path(path_type=Path),
              help="Restore from an encrypted .tar.gz.gpg archive")
@click.option("--dry-run", is_flag=True, help="Show what would be restored without changing anything")
@click.pass_context
def restore_cmd(ctx, force_all: bool, base_directory: Optional[Path], explicit_directory: Optional[Path],
                encrypted_source: Optional[Path], dry_run: bool):
    """Restore home directory state from a backup (newest by default)."""
    config: KeeperConfig = ctx.obj["config"]
    run_config = RunConfig.from_config(
        config,
        force_all=force_all,
        dry_run=dry_run,
        base_directory=expand_path(base_directory) if base_directory else None,
        explicit_directory=expand_path(explicit_directory) if explicit_directory else None,
        encrypted_source=expand_path(encrypted_source) if encrypted_source else None,
    )

    executor = RestoreExecutor(
        _build_engine(config), _build_policy(), _build_encryptor(config), console=console
    )
    try:
        summary = executor.execute(run_config)
    except KeeperError as e:
        logger.debug("Run aborted", exc_info=True)
        _fail(str(e))
        return

    _print_summary(summary)


@cli.command("list")
@click.option("--dir", "-d", "base_directory", type=click.Path(path_type=Path), help="Base backup folder")
@click.pass_context
def list_cmd(ctx, base_directory: Optional[Path]):
    """List available backups and encrypted archives."""
    config: KeeperConfig = ctx.obj["config"]
    storage = BackupStorage(expand_path(base_directory) if base_directory else config.backup_root)

    entries: List[Path] = storage.list_backups() + storage.list_archives()
    if not entries:
        console.print(f"[yellow]No backups found in {storage.base_path}[/yellow]")
        return

    table = Table(title=f"Backups in {storage.base_path}")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="white")
    table.add_column("Size", style="white")

    for entry in entries:
        kind = "encrypted" if entry.is_file() else "folder"
        table.add_row(entry.name, kind, format_size(path_size(entry)))

    console.print(table)


def _run_tasks(ctx, force_all: bool, dry_run: bool, build, operation: str) -> None:
    config: KeeperConfig = ctx.obj["config"]
    run_config = RunConfig.from_config(config, force_all=force_all, dry_run=dry_run)

    package_manager = detect_package_manager()
    if package_manager is None:
        console.print("[info] No supported package manager found.", markup=False)

    tasks = build(config, package_manager)
    report = TaskRunner(_build_policy(), console).run(tasks, run_config)
    _print_task_report(report, operation)


@cli.command("install")
@click.option("--all", "-a", "force_all", is_flag=True, help="Install all categories without prompts")
@click.option("--dry-run", is_flag=True, help="Preview actions without making changes")
@click.pass_context
def install_cmd(ctx, force_all: bool, dry_run: bool):
    """Install baseline packages by category."""
    _run_tasks(
        ctx, force_all, dry_run,
        lambda config, pm: build_install_tasks(config.install, pm),
        "Installation",
    )


@cli.command("cleanup")
@click.option("--all", "-a", "force_all", is_flag=True, help="Run all cleanups without prompts")
@click.option("--dry-run", is_flag=True, help="Preview actions without making changes")
@click.pass_context
def cleanup_cmd(ctx, force_all: bool, dry_run: bool):
    """Reclaim disk space."""
    _run_tasks(
        ctx, force_all, dry_run,
        lambda config, pm: build_cleanup_tasks(config.cleanup, pm),
        "Cleanup",
    )


def main(argv: Optional[List[str]] = None):
    """Main entry point.

    Usage errors exit with status 1 rather than click's default of 2.
    """
    try:
        cli.main(args=argv, prog_name="homekeeper", standalone_mode=False)
    except click.UsageError as e:
        e.show()
        sys.exit(1)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except click.Abort:
        console.print("Aborted!", markup=False)
        sys.exit(1)


if __name__ == "__main__":
    main()
