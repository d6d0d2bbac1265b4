"""Command group: clans."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from playerstore.commands._base import StoreGroup

if TYPE_CHECKING:
    from playerstore.commands._context import AppContext


@click.group(cls=StoreGroup)
def clan() -> None:
    """Inspect clans."""


@clan.command("list")
@click.option("--members", is_flag=True, help="Include each clan's member roster.")
@click.pass_obj
def list_cmd(app: AppContext, members: bool) -> None:
    """List clans."""
    from playerstore.services.ledger import LedgerService

    app.emit(LedgerService(app.store).list_clans(members=members))
