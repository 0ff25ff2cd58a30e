"""Tests for CLI main module."""

import json as _json
import pathlib as _pathlib
import typing as _typing

import click.testing as _click_testing
import pytest as _pytest

import huginn
import huginn.cli as cli


@_pytest.fixture
def runner(isolated_config: _pathlib.Path) -> _click_testing.CliRunner:  # noqa: ARG001
    """CliRunner with settings isolated from the developer's config."""
    return _click_testing.CliRunner()


@_pytest.fixture
def snapshot_files(
    tmp_path: _pathlib.Path,
    raw_data: dict[str, _typing.Any],
) -> tuple[_pathlib.Path, _pathlib.Path]:
    """Old snapshot as JSON; new snapshot as YAML with turn changed and messages[0] removed."""
    old = tmp_path / "old.json"
    old.write_text(_json.dumps(raw_data))
    new = tmp_path / "new.yaml"
    new.write_text(
        "game: {turn: 0}\n"
        "players:\n"
        "  key1: {id: key1, position: {x: 0, y: 10}}\n"
        "  key2: {id: key2, position: {x: 10, y: 20}}\n"
        "turn: key1\n"
        "'null': null\n"
        "messages: [two, three]\n",
    )
    return old, new


class TestCLIBasics:
    """Basic CLI functionality."""

    def test_help_shows_all_commands(self, runner: _click_testing.CliRunner) -> None:
        """Help output should list all available commands."""
        result = runner.invoke(cli.cli, ["--help"])
        assert result.exit_code == 0
        assert "Huginn" in result.output
        for cmd in ["diff", "watch", "placeholders", "config"]:
            assert cmd in result.output, f"Command '{cmd}' missing from help"

    def test_version_shows_current_version(self, runner: _click_testing.CliRunner) -> None:
        result = runner.invoke(cli.cli, ["--version"])
        assert result.exit_code == 0
        assert huginn.__version__ in result.output

    def test_broken_config_is_reported(
        self,
        runner: _click_testing.CliRunner,
        isolated_config: _pathlib.Path,
    ) -> None:
        """Invalid config files fail with a message, not a traceback."""
        (isolated_config / ".huginn").mkdir()
        (isolated_config / ".huginn" / "config.yaml").write_text("logging:\n  level: LOUD\n")
        result = runner.invoke(cli.cli, ["placeholders"])
        assert result.exit_code == 1
        assert "unknown log level" in result.output


class TestDiffCommand:
    """Tests for `huginn diff`."""

    def test_diff_json(
        self,
        runner: _click_testing.CliRunner,
        snapshot_files: tuple[_pathlib.Path, _pathlib.Path],
    ) -> None:
        old, new = snapshot_files
        result = runner.invoke(cli.cli, ["diff", str(old), str(new), "--json"])
        assert result.exit_code == 0, result.output
        assert _json.loads(result.output) == [
            {"operation": "replace", "path": ["turn"], "value": "key1"},
            {"operation": "replace", "path": ["messages", "0"], "value": "two"},
            {"operation": "replace", "path": ["messages", "1"], "value": "three"},
            {"operation": "remove", "path": ["messages", "2"]},
        ]

    def test_diff_table(
        self,
        runner: _click_testing.CliRunner,
        snapshot_files: tuple[_pathlib.Path, _pathlib.Path],
    ) -> None:
        old, new = snapshot_files
        result = runner.invoke(cli.cli, ["diff", str(old), str(new)])
        assert result.exit_code == 0, result.output
        assert "4 patches" in result.output
        assert "/messages/2" in result.output

    def test_diff_no_changes(
        self,
        runner: _click_testing.CliRunner,
        snapshot_files: tuple[_pathlib.Path, _pathlib.Path],
    ) -> None:
        old, _ = snapshot_files
        result = runner.invoke(cli.cli, ["diff", str(old), str(old)])
        assert result.exit_code == 0
        assert "No changes." in result.output

    def test_diff_invalid_snapshot(
        self,
        runner: _click_testing.CliRunner,
        tmp_path: _pathlib.Path,
    ) -> None:
        bad = tmp_path / "bad.json"
        bad.write_text("[1, 2, 3]")
        result = runner.invoke(cli.cli, ["diff", str(bad), str(bad)])
        assert result.exit_code == 1
        assert "root must be a map" in result.output

    def test_diff_undecodable_snapshot(
        self,
        runner: _click_testing.CliRunner,
        tmp_path: _pathlib.Path,
    ) -> None:
        """A non-UTF-8 file is a load error, not a traceback."""
        bad = tmp_path / "bad.json"
        bad.write_bytes(b'{"a": "\xff"}')
        result = runner.invoke(cli.cli, ["diff", str(bad), str(bad)])
        assert result.exit_code == 1
        assert "not valid UTF-8" in result.output

    def test_diff_missing_file(
        self,
        runner: _click_testing.CliRunner,
        tmp_path: _pathlib.Path,
    ) -> None:
        missing = str(tmp_path / "missing.json")
        result = runner.invoke(cli.cli, ["diff", missing, missing])
        assert result.exit_code == 2


class TestWatchCommand:
    """Tests for `huginn watch`."""

    def test_watch_json(
        self,
        runner: _click_testing.CliRunner,
        snapshot_files: tuple[_pathlib.Path, _pathlib.Path],
    ) -> None:
        old, new = snapshot_files
        result = runner.invoke(
            cli.cli, ["watch", "messages/:number", str(old), str(new), "--json"]
        )
        assert result.exit_code == 0, result.output
        assert _json.loads(result.output) == [
            {"listener": "pattern", "operation": "remove", "path_variables": {"number": "2"}},
            {
                "listener": "pattern",
                "operation": "replace",
                "path_variables": {"number": "1"},
                "value": "three",
            },
            {
                "listener": "pattern",
                "operation": "replace",
                "path_variables": {"number": "0"},
                "value": "two",
            },
        ]

    def test_watch_fallback(
        self,
        runner: _click_testing.CliRunner,
        snapshot_files: tuple[_pathlib.Path, _pathlib.Path],
    ) -> None:
        old, new = snapshot_files
        result = runner.invoke(
            cli.cli, ["watch", "turn", str(old), str(new), "--fallback", "--json"]
        )
        assert result.exit_code == 0, result.output
        events = _json.loads(result.output)
        assert [e["listener"] for e in events] == ["fallback", "fallback", "fallback", "pattern"]
        assert events[0] == {"listener": "fallback", "operation": "remove", "path": ["messages", "2"]}
        assert events[-1]["value"] == "key1"

    def test_watch_immediate(
        self,
        runner: _click_testing.CliRunner,
        snapshot_files: tuple[_pathlib.Path, _pathlib.Path],
    ) -> None:
        old, new = snapshot_files
        result = runner.invoke(
            cli.cli, ["watch", "game/turn", str(old), str(new), "--immediate", "--json"]
        )
        assert result.exit_code == 0, result.output
        assert _json.loads(result.output) == [
            {"listener": "pattern", "operation": "add", "path_variables": {}, "value": 0},
        ]

    def test_watch_no_events(
        self,
        runner: _click_testing.CliRunner,
        snapshot_files: tuple[_pathlib.Path, _pathlib.Path],
    ) -> None:
        old, new = snapshot_files
        result = runner.invoke(cli.cli, ["watch", "players/:id", str(old), str(new)])
        assert result.exit_code == 0
        assert "No events for 'players/:id'." in result.output

    def test_watch_uses_configured_placeholders(
        self,
        runner: _click_testing.CliRunner,
        isolated_config: _pathlib.Path,
    ) -> None:
        (isolated_config / ".huginn").mkdir()
        (isolated_config / ".huginn" / "config.yaml").write_text(
            "matching:\n  placeholders:\n    ':slot': '^(slot[0-9]+)$'\n",
        )
        old = isolated_config / "old.json"
        old.write_text('{"inventory": {}}')
        new = isolated_config / "new.json"
        new.write_text('{"inventory": {"slot1": "sword", "bag": "rope"}}')

        result = runner.invoke(
            cli.cli, ["watch", "inventory/:slot", str(old), str(new), "--json"]
        )

        assert result.exit_code == 0, result.output
        assert _json.loads(result.output) == [
            {
                "listener": "pattern",
                "operation": "add",
                "path_variables": {"slot": "slot1"},
                "value": "sword",
            },
        ]


class TestPlaceholdersCommand:
    """Tests for `huginn placeholders`."""

    def test_builtins_listed(self, runner: _click_testing.CliRunner) -> None:
        result = runner.invoke(cli.cli, ["placeholders", "--json"])
        assert result.exit_code == 0, result.output
        data = _json.loads(result.output)
        assert list(data) == [":id", ":number", ":string", ":axis", ":*"]
        assert data[":number"] == "^([0-9]+)$"

    def test_env_marker(
        self,
        runner: _click_testing.CliRunner,
        monkeypatch: _pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("HUGINN_MATCHING__MARKER", "$")
        result = runner.invoke(cli.cli, ["placeholders", "--json"])
        assert result.exit_code == 0, result.output
        assert "$id" in _json.loads(result.output)

    def test_table_output(self, runner: _click_testing.CliRunner) -> None:
        result = runner.invoke(cli.cli, ["placeholders"])
        assert result.exit_code == 0
        assert ":axis" in result.output


class TestConfigShow:
    """Tests for `huginn config show`."""

    def test_config_show_outputs_yaml(self, runner: _click_testing.CliRunner) -> None:
        result = runner.invoke(cli.cli, ["config", "show"])
        assert result.exit_code == 0
        assert "matching:" in result.output
        assert "container:" in result.output
        assert "logging:" in result.output

    def test_config_show_json(self, runner: _click_testing.CliRunner) -> None:
        result = runner.invoke(cli.cli, ["config", "show", "--json"])
        assert result.exit_code == 0
        data = _json.loads(result.output)
        assert data["container"]["on_listener_error"] == "raise"
        assert data["matching"]["marker"] == ":"

    def test_config_show_warns_on_unknown_keys(
        self,
        isolated_config: _pathlib.Path,
    ) -> None:
        (isolated_config / ".huginn").mkdir()
        (isolated_config / ".huginn" / "config.yaml").write_text("container:\n  seperator: '.'\n")
        result = _click_testing.CliRunner().invoke(
            cli.cli, ["config", "show", "--json"]
        )
        assert result.exit_code == 0
        assert _json.loads(result.stdout)["container"]["seperator"] == "."
        assert "container.seperator" in result.stderr
