"""Command group: auction house ledger."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from playerstore.commands._base import StoreGroup

if TYPE_CHECKING:
    from playerstore.commands._context import AppContext


@click.group(
    cls=StoreGroup,
    examples="""\
  playerstore auction list
  playerstore auction list --seller 12
  playerstore auction claims 12""",
)
def auction() -> None:
    """Inspect auction listings and claims."""


@auction.command("list")
@click.option("--seller", type=int, default=None, help="Only listings by this player id.")
@click.pass_obj
def list_cmd(app: AppContext, seller: int | None) -> None:
    """List open auctions."""
    from playerstore.services.ledger import LedgerService

    app.emit(LedgerService(app.store).list_auctions(seller=seller))


@auction.command()
@click.argument("player_id", type=int)
@click.pass_obj
def claims(app: AppContext, player_id: int) -> None:
    """List expired auctions a player has yet to collect."""
    from playerstore.services.ledger import LedgerService

    app.emit(LedgerService(app.store).collectible(player_id))
