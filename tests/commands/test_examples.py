"""Tests for the --examples flag on CLI commands."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from playerstore.cli import cli

# (CLI args, expected keywords in output)
EXAMPLES_COMMANDS: list[tuple[list[str], list[str]]] = [
    (["init", "--examples"], ["playerstore init /srv/rsc --prefix openrsc_"]),
    (["check", "--examples"], ["playerstore check --fix"]),
    (["upgrade", "--examples"], ["playerstore upgrade --check"]),
    (["player", "--examples"], ["playerstore player show alice"]),
    (["auction", "--examples"], ["playerstore auction claims 12"]),
]


@pytest.mark.parametrize(("args", "keywords"), EXAMPLES_COMMANDS)
def test_examples_flag(cli_runner: CliRunner, args: list[str], keywords: list[str]) -> None:
    result = cli_runner.invoke(cli, args)
    assert result.exit_code == 0, result.output
    assert "Examples for" in result.output
    for keyword in keywords:
        assert keyword in result.output


def test_examples_absent_without_text(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["clan", "--examples"])
    assert result.exit_code == 2
