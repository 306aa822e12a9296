"""Template and configuration commands for the listsync CLI.

Commands:
- identify: Print the sync identifier of a record
- render: Print the document a record would be created as
- init-config: Write the default configuration
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from listsync.cli.config import (
    get_config_file,
    load_config,
    load_records,
    load_settings,
    save_config,
)
from listsync.cli.sync import config_option
from listsync.core.config import SyncSettings
from listsync.core.identifiers import derive_sync_identifier, sync_identifier_for
from listsync.core.types import ListSyncError


@click.command()
@click.argument("provider")
@click.argument("category")
@click.argument("external_id", metavar="ID")
def identify(provider: str, category: str, external_id: str) -> None:
    """Print the sync identifier for PROVIDER CATEGORY ID."""
    try:
        click.echo(derive_sync_identifier(provider, category, external_id))
    except ListSyncError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@click.command()
@click.argument("records_file", metavar="RECORDS", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@config_option
@click.option("--index", "-i", type=int, default=0, show_default=True, help="Record to render.")
def render(records_file: Path, config_file: Path | None, index: int) -> None:
    """Print the document a record in RECORDS would be created as.

    Nothing is written.
    """
    from listsync.sync import file_stem
    from listsync.template import build_frontmatter, render_body, render_document

    try:
        settings = load_settings(config_file)
        records = load_records(records_file)
        record = records[index]
        template = settings.template_for(record.category)
        identifier = sync_identifier_for(record)
    except IndexError:
        click.echo(f"Error: no record at index {index} ({len(records)} records)", err=True)
        sys.exit(1)
    except ListSyncError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    stem = file_stem(record, template)
    folder = f"{template.folder_path}/" if template.folder_path else ""
    click.echo(click.style(f"{folder}{stem}.md", bold=True))
    click.echo(render_document(build_frontmatter(record, template, identifier), render_body(record, template)))


@click.command("init-config")
@config_option
@click.option("--force", is_flag=True, help="Overwrite an existing config file.")
def init_config(config_file: Path | None, force: bool) -> None:
    """Write the default templates to the config file."""
    config_file = config_file or get_config_file()
    if config_file.exists() and not force:
        click.echo(f"Error: {config_file} already exists. Use --force to overwrite.", err=True)
        sys.exit(1)

    try:
        existing = load_config(config_file)
    except ListSyncError:
        existing = {}
    config = SyncSettings().to_dict()
    if existing.get("vault"):
        config["vault"] = existing["vault"]
    save_config(config, config_file)
    click.echo(f"Wrote default configuration to {config_file}")
