"""AppContext: shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Provides lazy GameStore initialization and centralized
result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from playerstore.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from playerstore.config.settings import StoreSettings
    from playerstore.infrastructure.store import GameStore
    from playerstore.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The store is opened on first use so ``--help`` and ``--version``
    never touch the database.
    """

    def __init__(self, settings: StoreSettings) -> None:
        self.settings = settings
        self._store: GameStore | None = None

        from playerstore.config.logging import configure_logging

        configure_logging(
            verbose=settings.verbose,
            log_json=settings.log_json,
            sql_echo=settings.database.echo,
        )

        if settings.verbose:
            from playerstore.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def store(self) -> GameStore:
        """The store instance (created lazily on first access)."""
        if self._store is None:
            from playerstore.infrastructure.database.errors import PersistenceError
            from playerstore.infrastructure.store import GameStore

            try:
                self._store = GameStore(self.settings)
            except PersistenceError as exc:
                click.echo(f"ERROR: cannot open store: {exc}", err=True)
                raise SystemExit(1) from exc
        return self._store

    def close(self) -> None:
        if self._store is not None:
            self._store.close()
            self._store = None

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings go to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
