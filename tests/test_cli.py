"""Tests for CLI commands - sync, duplicates, identify, render, init-config."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from listsync.cli import cli
from listsync.sync.service import BatchProgress, SyncService

RECORDS = [
    {
        "provider": "mal",
        "category": "anime",
        "externalId": 1245,
        "title": "Attack on Titan",
        "updatedAt": "2024-01-01T00:00:00Z",
        "genres": [{"id": 1, "name": "Action"}],
    },
    {
        "provider": "mal",
        "category": "manga",
        "externalId": 2,
        "title": "Berserk",
        "updatedAt": "2024-01-01T00:00:00Z",
    },
]


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    """Undo the CLI's logging setup so later tests can capture logs."""
    package_logger = logging.getLogger("listsync")
    handlers, level, propagate = list(package_logger.handlers), package_logger.level, package_logger.propagate
    yield
    package_logger.handlers = handlers
    package_logger.setLevel(level)
    package_logger.propagate = propagate


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    return tmp_path / "config.json"


@pytest.fixture
def records_file(tmp_path: Path) -> Path:
    path = tmp_path / "records.json"
    path.write_text(json.dumps(RECORDS), encoding="utf-8")
    return path


def sync_args(records_file: Path, vault: Path, config_file: Path, *extra: str) -> list[str]:
    return ["sync", str(records_file), "--vault", str(vault), "--config", str(config_file), *extra]


class TestSyncCommand:
    """Tests for 'listsync sync'."""

    def test_creates_documents(
        self, runner: CliRunner, records_file: Path, vault: Path, config_file: Path
    ) -> None:
        """Sync should create one document per record."""
        result = runner.invoke(cli, sync_args(records_file, vault, config_file))

        assert result.exit_code == 0, result.output
        assert (vault / "Media" / "Anime" / "Attack on Titan.md").is_file()
        assert (vault / "Media" / "Manga" / "Berserk.md").is_file()
        assert "+ [1/2] Media/Anime/Attack on Titan.md" in result.output
        assert "Synced 2 records: 2 created" in result.output

    def test_second_run_skips(
        self, runner: CliRunner, records_file: Path, vault: Path, config_file: Path
    ) -> None:
        runner.invoke(cli, sync_args(records_file, vault, config_file))
        result = runner.invoke(cli, sync_args(records_file, vault, config_file))

        assert result.exit_code == 0
        assert "Synced 2 records: 2 skipped" in result.output
        assert "[1/2]" not in result.output

    def test_force_updates(
        self, runner: CliRunner, records_file: Path, vault: Path, config_file: Path
    ) -> None:
        runner.invoke(cli, sync_args(records_file, vault, config_file))
        result = runner.invoke(cli, sync_args(records_file, vault, config_file, "--force"))

        assert result.exit_code == 0
        assert "2 updated" in result.output

    def test_no_progress(
        self, runner: CliRunner, records_file: Path, vault: Path, config_file: Path
    ) -> None:
        result = runner.invoke(cli, sync_args(records_file, vault, config_file, "--no-progress"))
        assert result.exit_code == 0
        assert "[1/2]" not in result.output
        assert "Synced 2 records" in result.output

    def test_vault_from_config(
        self, runner: CliRunner, records_file: Path, tmp_path: Path, config_file: Path
    ) -> None:
        vault = tmp_path / "configured"
        config_file.write_text(json.dumps({"vault": str(vault)}), encoding="utf-8")

        result = runner.invoke(cli, ["sync", str(records_file), "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        assert (vault / "Media" / "Anime" / "Attack on Titan.md").is_file()

    def test_custom_template_from_config(
        self, runner: CliRunner, records_file: Path, vault: Path, config_file: Path
    ) -> None:
        config_file.write_text(
            json.dumps(
                {
                    "animeTemplate": {
                        "folderPath": "Watching",
                        "fileName": "{{title|kebab}}",
                        "properties": [
                            {"id": "g", "template": "{{genres|wikilink}}", "customName": "tags", "order": 1}
                        ],
                    }
                }
            ),
            encoding="utf-8",
        )

        result = runner.invoke(cli, sync_args(records_file, vault, config_file))

        assert result.exit_code == 0, result.output
        text = (vault / "Watching" / "attack-on-titan.md").read_text(encoding="utf-8")
        assert "tags:\n- '[[Action]]'\n" in text
        assert "sync_key: mal:anime:1245\n" in text

    def test_failed_record_exits_nonzero(
        self, runner: CliRunner, tmp_path: Path, vault: Path, config_file: Path
    ) -> None:
        records_file = tmp_path / "bad.json"
        records_file.write_text(json.dumps([RECORDS[0], {"title": "No id"}]), encoding="utf-8")

        result = runner.invoke(cli, sync_args(records_file, vault, config_file))

        assert result.exit_code == 1
        assert (vault / "Media" / "Anime" / "Attack on Titan.md").is_file()

    def test_invalid_records_file(
        self, runner: CliRunner, tmp_path: Path, vault: Path, config_file: Path
    ) -> None:
        records_file = tmp_path / "broken.json"
        records_file.write_text("{not json", encoding="utf-8")

        result = runner.invoke(cli, sync_args(records_file, vault, config_file))

        assert result.exit_code == 1

    def test_invalid_config(
        self, runner: CliRunner, records_file: Path, vault: Path, config_file: Path
    ) -> None:
        config_file.write_text("[]", encoding="utf-8")
        result = runner.invoke(cli, sync_args(records_file, vault, config_file))
        assert result.exit_code == 1

    def test_progress_without_result_ignored(
        self, runner: CliRunner, records_file: Path, vault: Path, config_file: Path
    ) -> None:
        """An event carrying neither a result nor an error is not counted."""
        events = iter([BatchProgress(1, 2, "Attack on Titan")])
        with patch.object(SyncService, "iter_save_many", return_value=events):
            result = runner.invoke(cli, sync_args(records_file, vault, config_file))

        assert result.exit_code == 0, result.output
        assert "Synced 2 records: nothing to do" in result.output

    def test_records_wrapped_in_object(
        self, runner: CliRunner, tmp_path: Path, vault: Path, config_file: Path
    ) -> None:
        records_file = tmp_path / "wrapped.json"
        records_file.write_text(json.dumps({"records": RECORDS[:1]}), encoding="utf-8")

        result = runner.invoke(cli, sync_args(records_file, vault, config_file))

        assert result.exit_code == 0
        assert "Synced 1 records: 1 created" in result.output


class TestDuplicatesCommand:
    """Tests for 'listsync duplicates'."""

    def test_no_duplicates(self, runner: CliRunner, vault: Path, config_file: Path) -> None:
        result = runner.invoke(cli, ["duplicates", "--vault", str(vault), "--config", str(config_file)])
        assert result.exit_code == 0
        assert "No duplicates found." in result.output

    def test_lists_duplicates(self, runner: CliRunner, vault: Path, config_file: Path) -> None:
        folder = vault / "Media" / "Anime"
        folder.mkdir(parents=True)
        for name in ("AoT.md", "Attack on Titan.md"):
            (folder / name).write_text("---\nsync_key: mal:anime:1245\n---\n", encoding="utf-8")

        result = runner.invoke(cli, ["duplicates", "--vault", str(vault), "--config", str(config_file)])

        assert result.exit_code == 0
        assert "mal:anime:1245" in result.output
        assert "  * Media/Anime/AoT.md" in result.output
        assert "    Media/Anime/Attack on Titan.md" in result.output


class TestIdentifyCommand:
    """Tests for 'listsync identify'."""

    def test_identify(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["identify", "MAL", "Anime", "1245"])
        assert result.exit_code == 0
        assert result.output.strip() == "mal:anime:1245"

    def test_identify_invalid(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["identify", "mal", "anime", "a:b"])
        assert result.exit_code == 1


class TestRenderCommand:
    """Tests for 'listsync render'."""

    def test_render(self, runner: CliRunner, records_file: Path, config_file: Path, vault: Path) -> None:
        """Render prints the document without writing anything."""
        result = runner.invoke(cli, ["render", str(records_file), "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        assert "Media/Anime/Attack on Titan.md" in result.output
        assert "sync_key: mal:anime:1245" in result.output
        assert "# Attack on Titan" in result.output
        assert list(vault.iterdir()) == []

    def test_render_index(self, runner: CliRunner, records_file: Path, config_file: Path) -> None:
        result = runner.invoke(cli, ["render", str(records_file), "--config", str(config_file), "-i", "1"])
        assert result.exit_code == 0
        assert "Media/Manga/Berserk.md" in result.output

    def test_render_index_out_of_range(self, runner: CliRunner, records_file: Path, config_file: Path) -> None:
        result = runner.invoke(cli, ["render", str(records_file), "--config", str(config_file), "-i", "5"])
        assert result.exit_code == 1


class TestInitConfigCommand:
    """Tests for 'listsync init-config'."""

    def test_writes_defaults(self, runner: CliRunner, config_file: Path) -> None:
        result = runner.invoke(cli, ["init-config", "--config", str(config_file)])

        assert result.exit_code == 0
        data = json.loads(config_file.read_text(encoding="utf-8"))
        assert data["templates"]["anime"]["folderPath"] == "Media/Anime"
        assert data["yieldEvery"] == 10

    def test_refuses_overwrite(self, runner: CliRunner, config_file: Path) -> None:
        config_file.write_text("{}", encoding="utf-8")
        result = runner.invoke(cli, ["init-config", "--config", str(config_file)])
        assert result.exit_code == 1
        assert config_file.read_text(encoding="utf-8") == "{}"

    def test_force_keeps_vault(self, runner: CliRunner, config_file: Path) -> None:
        config_file.write_text(json.dumps({"vault": "/notes"}), encoding="utf-8")

        result = runner.invoke(cli, ["init-config", "--config", str(config_file), "--force"])

        assert result.exit_code == 0
        data = json.loads(config_file.read_text(encoding="utf-8"))
        assert data["vault"] == "/notes"
        assert "templates" in data

    def test_default_location(self, runner: CliRunner, tmp_path: Path) -> None:
        """Without --config the file goes to the config directory."""
        with patch("listsync.cli.config.get_config_dir", return_value=tmp_path / ".listsync"):
            result = runner.invoke(cli, ["init-config"])
        assert result.exit_code == 0
        assert (tmp_path / ".listsync" / "config.json").exists()


class TestVersion:
    """Tests for 'listsync --version'."""

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output
