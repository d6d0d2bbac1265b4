"""Tests for the player CLI command group."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from playerstore.cli import cli


@pytest.mark.usefixtures("_isolated_root")
class TestPlayerCommands:
    def test_create_then_show(self, cli_runner: CliRunner) -> None:
        created = cli_runner.invoke(cli, ["player", "create", "alice", "--password", "hash"])
        assert created.exit_code == 0, created.output
        assert "username: alice" in created.output

        shown = cli_runner.invoke(cli, ["player", "show", "alice"])
        assert shown.exit_code == 0, shown.output
        assert "alice" in shown.output
        assert "attack 1" in shown.output

    def test_create_prompts_for_password(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "player", "create", "bob"], input="secret\n")
        assert result.exit_code == 0, result.output
        assert '"username": "bob"' in result.output

    def test_duplicate_create_fails(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["player", "create", "alice", "--password", "hash"])
        result = cli_runner.invoke(cli, ["player", "create", "alice", "--password", "hash"])
        assert result.exit_code == 1

    def test_exists(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["player", "create", "alice", "--password", "hash"])
        result = cli_runner.invoke(cli, ["--json", "player", "exists", "alice"])
        assert json.loads(result.output)["data"]["exists"] is True
        result = cli_runner.invoke(cli, ["--json", "player", "exists", "nobody"])
        assert json.loads(result.output)["data"]["exists"] is False

    def test_dump_by_id(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["player", "create", "alice", "--password", "hash"])
        result = cli_runner.invoke(cli, ["--json", "player", "dump", "1"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["data"]["player"]["username"] == "alice"

    def test_show_missing(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["player", "show", "ghost"])
        assert result.exit_code == 1
        assert "No player" in result.output

    def test_verbose_prints_span_tree(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-v", "player", "exists", "bob"])
        assert result.exit_code == 0, result.output
        assert "meta:" in result.output
        assert "PlayerService.exists" in result.output

    def test_ban_and_unban(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["player", "create", "bob", "--password", "hash"])
        result = cli_runner.invoke(cli, ["player", "ban", "bob", "--minutes", "15"])
        assert result.exit_code == 0, result.output
        assert "bob has been banned for 15 minutes" in result.output
        result = cli_runner.invoke(cli, ["--json", "player", "ban", "bob", "--minutes", "0"])
        assert json.loads(result.output)["data"]["message"] == "bob has been unbanned."

    def test_ban_rejects_bad_minutes(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["player", "ban", "bob", "--minutes", "-5"])
        assert result.exit_code == 2

    def test_linked_lists_accounts(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["player", "create", "alice", "--password", "hash"])
        cli_runner.invoke(cli, ["player", "create", "bob", "--password", "hash"])
        result = cli_runner.invoke(cli, ["player", "linked", "alice"])
        assert result.exit_code == 0, result.output
        assert "0.0.0.0" in result.output
        assert "bob" in result.output
        assert "2 accounts" in result.output
