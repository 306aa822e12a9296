"""Sync commands for the listsync CLI.

Commands:
- sync: Sync a records export into the vault
- duplicates: List identifiers carried by more than one document
"""

from __future__ import annotations

import sys
import threading
from pathlib import Path

import click

from listsync.cli.config import (
    configure_logging,
    get_vault_folder,
    load_records,
    load_settings,
)
from listsync.core.types import ListSyncError, SyncAction

ACTION_SYMBOLS = {
    SyncAction.CREATED: "+",
    SyncAction.UPDATED: "~",
    SyncAction.LINKED_LEGACY: "=",
    SyncAction.DUPLICATES_DETECTED: "!",
    SyncAction.SKIPPED: "·",
}

config_option = click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ~/.listsync/config.json).",
)
vault_option = click.option(
    "--vault",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Vault folder (default: from config, else ~/ListSync).",
)


@click.command()
@click.argument("records_file", metavar="RECORDS", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@vault_option
@config_option
@click.option("--force", is_flag=True, help="Rewrite every record, even unchanged ones.")
@click.option("--watch", "-w", is_flag=True, help="Re-sync whenever the records file changes.")
@click.option("--no-progress", is_flag=True, help="Only print the summary.")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
def sync(
    records_file: Path,
    vault: Path | None,
    config_file: Path | None,
    force: bool,
    watch: bool,
    no_progress: bool,
    verbose: bool,
) -> None:
    """Sync the records in RECORDS into Markdown documents.

    Each record is written to exactly one document, found by its sync
    identifier. Unchanged records are skipped unless --force is given.
    """
    from listsync.store import MarkdownStore
    from listsync.sync import RecordsWatcher, SyncService

    configure_logging(verbose)

    try:
        settings = load_settings(config_file)
    except ListSyncError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    if force:
        settings.force_full_sync = True

    vault = vault or get_vault_folder(config_file)
    service = SyncService(MarkdownStore(vault))
    run_lock = threading.Lock()

    def run_once() -> int:
        """Run one sync pass. Returns the number of failed records."""
        with run_lock:
            try:
                records = load_records(records_file)
            except ListSyncError as e:
                click.echo(f"Error: {e}", err=True)
                return 1

            counts: dict[str, int] = {}
            failed = 0
            for progress in service.iter_save_many(records, settings):
                if progress.error is not None:
                    failed += 1
                    click.echo(f"  ✗ {progress.title}: {progress.error}", err=True)
                    continue
                result = progress.result
                if result is None:
                    continue
                counts[result.action.value] = counts.get(result.action.value, 0) + 1
                if not no_progress and result.action is not SyncAction.SKIPPED:
                    symbol = ACTION_SYMBOLS[result.action]
                    click.echo(f"  {symbol} [{progress.current}/{progress.total}] {result.target_path}")
                if result.duplicate_paths:
                    for path in result.duplicate_paths:
                        click.echo(click.style(f"    duplicate: {path}", fg="yellow"))

            parts = [f"{count} {action}" for action, count in sorted(counts.items())]
            if failed:
                parts.append(click.style(f"{failed} failed", fg="red"))
            click.echo(f"Synced {len(records)} records: {', '.join(parts) or 'nothing to do'}")
            return failed

    click.echo(f"Vault: {vault}")
    failed = run_once()

    if not watch:
        if failed:
            sys.exit(1)
        return

    stop_event = threading.Event()
    with RecordsWatcher(records_file, on_change=run_once):
        click.echo("\nWatching for changes... (Ctrl+C to stop)\n")
        try:
            while not stop_event.wait(timeout=1.0):
                pass
        except KeyboardInterrupt:
            click.echo("\nStopping...")


@click.command()
@vault_option
@config_option
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
def duplicates(vault: Path | None, config_file: Path | None, verbose: bool) -> None:
    """List sync identifiers carried by more than one document.

    The first path of each group is the one sync keeps updating.
    """
    from listsync.store import MarkdownStore
    from listsync.sync import SyncService

    configure_logging(verbose)

    try:
        settings = load_settings(config_file)
    except ListSyncError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    vault = vault or get_vault_folder(config_file)
    service = SyncService(MarkdownStore(vault))

    scopes = sorted({(t.folder_path, t.sync_key_field) for t in settings.templates.values()})
    found = 0
    for folder, sync_field in scopes:
        groups = service.find_duplicates(folder, sync_field)
        for identifier, paths in groups.items():
            found += 1
            click.echo(click.style(identifier, bold=True))
            click.echo(f"  * {paths[0]}")
            for path in paths[1:]:
                click.echo(f"    {path}")

    if not found:
        click.echo("No duplicates found.")
