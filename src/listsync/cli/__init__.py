"""Command-line interface for listsync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- sync: Sync a records export into the vault
- duplicates: List identifiers carried by more than one document
- identify: Print the sync identifier of a record
- render: Print the document a record would be created as
- init-config: Write the default configuration
"""

from __future__ import annotations

import click

from listsync import __version__
from listsync.cli.config import (
    get_config_dir,
    get_config_file,
    get_vault_folder,
    load_config,
    load_records,
    load_settings,
    save_config,
)
from listsync.cli.sync import duplicates, sync
from listsync.cli.template import identify, init_config, render


@click.group()
@click.version_option(version=__version__, prog_name="listsync")
def cli() -> None:
    """listsync - Sync anime and manga lists into Markdown notes."""


# Sync commands
cli.add_command(sync)
cli.add_command(duplicates)

# Template commands
cli.add_command(identify)
cli.add_command(render)
cli.add_command(init_config)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "cli",
    "main",
    "get_config_dir",
    "get_config_file",
    "get_vault_folder",
    "load_config",
    "load_records",
    "load_settings",
    "save_config",
]
