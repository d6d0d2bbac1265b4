"""Subcommand modules for playerstore.

Provides register_commands() which uses deferred imports to keep
``playerstore --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group."""
    # --- Groups ---
    from playerstore.commands.auction import auction
    from playerstore.commands.clan import clan
    from playerstore.commands.player import player

    cli.add_command(player)
    cli.add_command(auction)
    cli.add_command(clan)

    # --- Standalone commands ---
    from playerstore.commands.check import check
    from playerstore.commands.init_cmd import init_cmd
    from playerstore.commands.upgrade import upgrade

    cli.add_command(check)
    cli.add_command(init_cmd)
    cli.add_command(upgrade)
