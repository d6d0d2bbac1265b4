"""Command group: player lookups."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from playerstore.commands._base import StoreGroup

if TYPE_CHECKING:
    from playerstore.commands._context import AppContext


@click.group(
    cls=StoreGroup,
    examples="""\
  playerstore player show 12
  playerstore player show alice
  playerstore --json player dump alice
  playerstore player exists bob
  playerstore player ban bob --minutes 60
  playerstore player ban bob --minutes 0
  playerstore player linked alice""",
)
def player() -> None:
    """Inspect and moderate stored players."""


@player.command()
@click.argument("ref")
@click.pass_obj
def show(app: AppContext, ref: str) -> None:
    """Summarize a player by id or username."""
    from playerstore.services.player import PlayerService

    app.emit(PlayerService(app.store).show(ref))


@player.command()
@click.argument("ref")
@click.pass_obj
def dump(app: AppContext, ref: str) -> None:
    """Load the full player aggregate (best with --json)."""
    from playerstore.services.player import PlayerService

    app.emit(PlayerService(app.store).load(ref))


@player.command()
@click.argument("ref")
@click.pass_obj
def exists(app: AppContext, ref: str) -> None:
    """Report whether a player id or username is taken."""
    from playerstore.services.player import PlayerService

    app.emit(PlayerService(app.store).exists(ref))


@player.command()
@click.argument("username")
@click.option("--password", prompt=True, hide_input=True, help="Password hash to store.")
@click.option("--email", default=None)
@click.pass_obj
def create(app: AppContext, username: str, password: str, email: str | None) -> None:
    """Create a new player account."""
    from playerstore.services.player import PlayerService

    app.emit(PlayerService(app.store).create(username, password, email=email))


@player.command()
@click.argument("username")
@click.option(
    "--minutes",
    type=click.IntRange(min=-1),
    default=-1,
    show_default=True,
    help="Ban length; -1 is permanent and 0 lifts the ban.",
)
@click.pass_obj
def ban(app: AppContext, username: str, minutes: int) -> None:
    """Ban or unban a player."""
    from playerstore.services.player import PlayerService

    app.emit(PlayerService(app.store).ban(username, minutes))


@player.command()
@click.argument("username")
@click.pass_obj
def linked(app: AppContext, username: str) -> None:
    """List accounts sharing USERNAME's last login ip."""
    from playerstore.services.player import PlayerService

    app.emit(PlayerService(app.store).linked(username))
