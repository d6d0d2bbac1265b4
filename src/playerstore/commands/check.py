"""Command: item identity integrity checking and repair."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from playerstore.commands._base import StoreCommand

if TYPE_CHECKING:
    from playerstore.commands._context import AppContext


@click.command(
    cls=StoreCommand,
    examples="""\
  playerstore check
  playerstore check --errors-only
  playerstore check --min-severity error
  playerstore check --fix
  playerstore --json check""",
)
@click.option(
    "--min-severity",
    type=click.Choice(["warning", "error"]),
    default="warning",
    help="Hide issues below this severity.",
)
@click.option("--errors-only", is_flag=True, help="Shortcut for --min-severity error.")
@click.option("--fix", is_flag=True, help="Back up, then repair orphans and resync the registry.")
@click.pass_obj
def check(app: AppContext, min_severity: str, errors_only: bool, fix: bool) -> None:
    """Check item identities and optionally repair them."""
    from playerstore.services.check import CheckService

    svc = CheckService(app.store)
    if fix:
        app.emit(svc.fix())
    else:
        threshold = "error" if errors_only else min_severity
        app.emit(svc.check(min_severity=threshold))
