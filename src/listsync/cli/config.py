"""Configuration utilities for the listsync CLI.

This module provides shared configuration functions used across CLI commands.

The config file is JSON: the SyncSettings mapping (see
SyncSettings.to_dict) plus an optional "vault" key naming the folder
documents are written to.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from listsync.core.config import SyncSettings
from listsync.core.types import ConfigError, MediaRecord


def get_config_dir() -> Path:
    """Get the configuration directory for listsync.

    Returns:
        Path to ~/.listsync
    """
    return Path.home() / ".listsync"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def load_config(config_file: Path | None = None) -> dict[str, Any]:
    """Load configuration from the config file.

    Returns:
        The configuration mapping, empty if the file does not exist.

    Raises:
        ConfigError: If the file is not a valid JSON object.
    """
    config_file = config_file or get_config_file()
    if not config_file.exists():
        return {}
    try:
        data = json.loads(config_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid config file {config_file}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_file} must contain a JSON object")
    return data


def save_config(config: dict[str, Any], config_file: Path | None = None) -> None:
    """Save configuration to the config file."""
    config_file = config_file or get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2, ensure_ascii=False), encoding="utf-8")


def load_settings(config_file: Path | None = None) -> SyncSettings:
    """Load sync settings, falling back to defaults for missing values."""
    return SyncSettings.from_dict(load_config(config_file))


def get_vault_folder(config_file: Path | None = None) -> Path:
    """Get the vault folder.

    Returns:
        Configured "vault" path, or ~/ListSync by default.
    """
    config = load_config(config_file)
    if config.get("vault"):
        return Path(config["vault"]).expanduser().resolve()
    return Path.home() / "ListSync"


def load_records(path: Path) -> list[MediaRecord]:
    """Load records from a JSON export.

    Accepts a list of record objects or an object with a "records" list.

    Raises:
        ConfigError: If the file cannot be parsed.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read records from {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("records")
    if not isinstance(data, list):
        raise ConfigError(f"{path} must contain a list of records")

    records = []
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise ConfigError(f"Record #{i} in {path} is not an object")
        records.append(MediaRecord.from_dict(item))
    return records


def configure_logging(verbose: bool = False) -> None:
    """Send listsync log messages to stderr.

    Args:
        verbose: Show debug messages instead of warnings and errors only.
    """
    package_logger = logging.getLogger("listsync")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    package_logger.propagate = False
