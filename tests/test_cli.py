"""Unit tests for the texsync CLI commands."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from texsync.cli import main
from texsync.config import _SETTINGS, Config
from texsync.exceptions import (
    MissingTargetFolderError,
    RemoteNetworkError,
    SyncCancelledError,
    TransferError,
)
from texsync.sync import StateManager, SyncResult
from texsync.sync.comparator import PlannedDownload, SyncPlan

PENDING_PLAN = SyncPlan(
    to_download=(
        PlannedDownload("a.png", "a.png"),
        PlannedDownload("menus/-b.png", "menus/b.png"),
    ),
    to_delete=("old.png",),
    skipped=1,
    up_to_date=3,
    revision="rev1",
)

CLEAN_PLAN = SyncPlan(up_to_date=5, revision="rev1")

RESULT = SyncResult(
    downloaded=2, deleted=1, skipped=1, new_revision="rev1", bytes_downloaded=2048
)


@pytest.fixture
def runner():
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep settings from the developer's environment out of the tests."""
    for env_vars, _ in _SETTINGS.values():
        for var in env_vars:
            monkeypatch.delenv(var, raising=False)


@pytest.fixture
def home(tmp_path):
    """Isolated config and state directories."""
    test_config = Config(tmp_path / "config")
    with patch("texsync.cli.config", test_config), patch(
        "texsync.cli.StateManager", lambda: StateManager(tmp_path / "state")
    ):
        yield tmp_path


@pytest.fixture
def textures(tmp_path):
    """A textures directory holding the default target folder."""
    root = tmp_path / "textures"
    (root / "SLUS-21770").mkdir(parents=True)
    return root


@pytest.fixture
def mock_engine():
    """Patch the client and engine used by the CLI."""
    with patch("texsync.cli.GitHubClient") as client_class, patch(
        "texsync.cli.SyncEngine"
    ) as engine_class:
        engine = engine_class.return_value
        engine.plan_only.return_value = PENDING_PLAN
        engine.execute.return_value = RESULT
        engine.client_class = client_class
        engine.engine_class = engine_class
        yield engine


class TestMainGroup:
    """Tests for the main CLI group."""

    def test_main_help(self, runner):
        """Test main help shows all commands."""
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "--token" in result.output
        for command in ("sync", "status", "set-path", "config"):
            assert command in result.output

    def test_sync_help(self, runner):
        """Test sync help shows its options."""
        result = runner.invoke(main, ["sync", "--help"])
        assert result.exit_code == 0
        assert "--dry-run" in result.output
        assert "--workers" in result.output


class TestSetPathCommand:
    """Tests for the set-path command."""

    def test_saves_path(self, runner, home, textures):
        """Test set-path stores the resolved directory."""
        result = runner.invoke(main, ["set-path", str(textures)])

        assert result.exit_code == 0
        state = StateManager(home / "state").load()
        assert state.textures_path == str(textures.resolve())

    def test_warns_when_target_folder_missing(self, runner, home, tmp_path):
        """Test set-path warns when the game folder is absent."""
        empty = tmp_path / "empty"
        empty.mkdir()

        result = runner.invoke(main, ["set-path", str(empty)])

        assert result.exit_code == 0
        assert "SLUS-21770 not found" in result.output
        assert StateManager(home / "state").load().textures_path is not None

    def test_rejects_missing_directory(self, runner, home, tmp_path):
        """Test set-path rejects a directory that does not exist."""
        result = runner.invoke(main, ["set-path", str(tmp_path / "nope")])

        assert result.exit_code == 2

    def test_json_output(self, runner, home, textures):
        """Test set-path JSON output."""
        result = runner.invoke(main, ["--json", "set-path", str(textures)])

        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "textures_path": str(textures.resolve())
        }


class TestConfigCommand:
    """Tests for the config command."""

    def test_shows_defaults(self, runner, home):
        """Test config shows built-in defaults."""
        result = runner.invoke(main, ["--json", "config"])

        assert result.exit_code == 0
        values = json.loads(result.output)
        assert values["repo_owner"] == "maddendeluxe"
        assert values["repo_name"] == "madden09deluxe"
        assert values["sparse_path"] == "textures/SLUS-21770"
        assert values["github_token"] is None

    def test_token_is_masked(self, runner, home, monkeypatch):
        """Test config never prints the token."""
        monkeypatch.setenv("GITHUB_TOKEN", "very-secret")

        result = runner.invoke(main, ["--json", "config"])

        assert json.loads(result.output)["github_token"] == "****"
        assert "very-secret" not in result.output

    def test_set_value(self, runner, home):
        """Test config --set persists a value."""
        result = runner.invoke(main, ["config", "--set", "branch", "develop"])
        assert result.exit_code == 0

        result = runner.invoke(main, ["--json", "config"])
        assert json.loads(result.output)["branch"] == "develop"

    def test_env_overrides_file(self, runner, home, monkeypatch):
        """Test environment variables override the config file."""
        runner.invoke(main, ["config", "--set", "branch", "develop"])
        monkeypatch.setenv("TEXSYNC_BRANCH", "release")

        result = runner.invoke(main, ["--json", "config"])

        assert json.loads(result.output)["branch"] == "release"

    def test_unknown_key(self, runner, home):
        """Test config --set rejects unknown keys."""
        result = runner.invoke(main, ["config", "--set", "colour", "blue"])

        assert result.exit_code == 1
        assert not (home / "config" / "config").exists()

    def test_corrupt_file(self, runner, home):
        """Test config fails on an unreadable config file."""
        (home / "config").mkdir()
        (home / "config" / "config").write_text("{not json")

        result = runner.invoke(main, ["config"])

        assert result.exit_code == 1


class TestStatusCommand:
    """Tests for the status command."""

    def test_no_path_and_nothing_saved(self, runner, home, mock_engine):
        """Test status fails without a textures directory."""
        result = runner.invoke(main, ["status"])

        assert result.exit_code == 1
        mock_engine.plan_only.assert_not_called()

    def test_json_status(self, runner, home, textures, mock_engine):
        """Test status JSON output."""
        result = runner.invoke(main, ["--json", "status", str(textures)])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["latest_revision"] == "rev1"
        assert data["files_to_download"] == 2
        assert data["files_to_delete"] == 1
        assert data["files_up_to_date"] == 3
        assert data["is_up_to_date"] is False
        mock_engine.execute.assert_not_called()

    def test_uses_saved_path(self, runner, home, textures, mock_engine):
        """Test status falls back to the saved directory."""
        StateManager(home / "state").set_textures_path(textures)
        mock_engine.plan_only.return_value = CLEAN_PLAN

        result = runner.invoke(main, ["status"])

        assert result.exit_code == 0
        mock_engine.plan_only.assert_called_once_with(Path(str(textures)))
        assert "up to date" in result.output

    def test_list_changes(self, runner, home, textures, mock_engine):
        """Test status --list prints every planned change."""
        result = runner.invoke(main, ["status", str(textures), "--list"])

        assert result.exit_code == 0
        assert "a.png" in result.output
        assert "menus/-b.png (from menus/b.png)" in result.output
        assert "old.png" in result.output

    def test_missing_target_folder(self, runner, home, tmp_path, mock_engine):
        """Test a missing game folder exits with a set-path hint."""
        mock_engine.plan_only.side_effect = MissingTargetFolderError(
            tmp_path / "SLUS-21770"
        )

        result = runner.invoke(main, ["status", str(tmp_path)])

        assert result.exit_code == 1
        assert "set-path" in result.output

    def test_network_error(self, runner, home, textures, mock_engine):
        """Test remote failures exit with code 1."""
        mock_engine.plan_only.side_effect = RemoteNetworkError("offline")

        result = runner.invoke(main, ["status", str(textures)])

        assert result.exit_code == 1

    def test_token_passed_to_client(self, runner, home, textures, mock_engine):
        """Test the global --token reaches the client."""
        runner.invoke(main, ["--token", "abc", "status", str(textures)])

        mock_engine.client_class.assert_called_once_with(token="abc")


class TestSyncCommand:
    """Tests for the sync command."""

    def test_dry_run_changes_nothing(self, runner, home, textures, mock_engine):
        """Test sync --dry-run only shows the plan."""
        result = runner.invoke(main, ["sync", str(textures), "--dry-run"])

        assert result.exit_code == 0
        assert "Dry run" in result.output
        assert "old.png" in result.output
        mock_engine.execute.assert_not_called()
        assert StateManager(home / "state").load().last_sync_revision is None

    def test_dry_run_json(self, runner, home, textures, mock_engine):
        """Test sync --dry-run JSON output."""
        result = runner.invoke(main, ["--json", "sync", str(textures), "--dry-run"])

        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "revision": "rev1",
            "download": ["a.png", "menus/-b.png"],
            "delete": ["old.png"],
            "skipped": 1,
            "up_to_date": 3,
        }

    def test_sync_records_revision(self, runner, home, textures, mock_engine):
        """Test a successful sync records its revision."""
        result = runner.invoke(
            main, ["sync", str(textures), "--yes", "--no-progress"]
        )

        assert result.exit_code == 0
        mock_engine.execute.assert_called_once_with(PENDING_PLAN, textures)
        state = StateManager(home / "state").load()
        assert state.last_sync_revision == "rev1"
        assert state.last_sync_at is not None
        assert "Sync Complete" in result.output

    def test_sync_json_result(self, runner, home, textures, mock_engine):
        """Test sync JSON output skips confirmation."""
        result = runner.invoke(main, ["--json", "sync", str(textures)])

        assert result.exit_code == 0
        assert json.loads(result.output) == RESULT.to_dict()

    def test_confirmation_declined(self, runner, home, textures, mock_engine):
        """Test declining confirmation changes nothing."""
        result = runner.invoke(
            main, ["sync", str(textures), "--no-progress"], input="n\n"
        )

        assert result.exit_code == 0
        mock_engine.execute.assert_not_called()
        assert StateManager(home / "state").load().last_sync_revision is None

    def test_confirmation_accepted(self, runner, home, textures, mock_engine):
        """Test accepting confirmation runs the sync."""
        result = runner.invoke(
            main, ["sync", str(textures), "--no-progress"], input="y\n"
        )

        assert result.exit_code == 0
        mock_engine.execute.assert_called_once()

    def test_already_in_sync(self, runner, home, textures, mock_engine):
        """Test an empty plan records the revision without executing."""
        mock_engine.plan_only.return_value = CLEAN_PLAN

        result = runner.invoke(main, ["sync", str(textures)])

        assert result.exit_code == 0
        assert "everything is in sync" in result.output
        mock_engine.execute.assert_not_called()
        assert StateManager(home / "state").load().last_sync_revision == "rev1"

    def test_workers_option(self, runner, home, textures, mock_engine):
        """Test --workers reaches the engine."""
        runner.invoke(main, ["sync", str(textures), "-j", "4", "--dry-run"])

        assert mock_engine.engine_class.call_args.kwargs["max_workers"] == 4

    def test_workers_out_of_range(self, runner, home, textures, mock_engine):
        """Test --workers rejects values below 1."""
        result = runner.invoke(main, ["sync", str(textures), "-j", "0"])

        assert result.exit_code == 2

    def test_transfer_error(self, runner, home, textures, mock_engine):
        """Test a failed transfer exits with code 1 and records nothing."""
        mock_engine.execute.side_effect = TransferError(
            "a.png", OSError(28, "No space left on device")
        )

        result = runner.invoke(
            main, ["sync", str(textures), "--yes", "--no-progress"]
        )

        assert result.exit_code == 1
        assert StateManager(home / "state").load().last_sync_revision is None
        mock_engine.client_class.return_value.close.assert_called_once()

    def test_cancelled(self, runner, home, textures, mock_engine):
        """Test a cancelled sync exits with code 130."""
        mock_engine.execute.side_effect = SyncCancelledError()

        result = runner.invoke(
            main, ["sync", str(textures), "--yes", "--no-progress"]
        )

        assert result.exit_code == 130
        assert StateManager(home / "state").load().last_sync_revision is None

    def test_no_saved_path(self, runner, home, mock_engine):
        """Test sync fails without a textures directory."""
        result = runner.invoke(main, ["sync", "--yes"])

        assert result.exit_code == 1
        mock_engine.plan_only.assert_not_called()
