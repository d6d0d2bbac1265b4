"""InitService: create a deployment directory, config file, and database."""

from __future__ import annotations

import logging
from pathlib import Path

from playerstore.config.discovery import CONFIG_FILENAME
from playerstore.config.settings import StoreSettings
from playerstore.infrastructure.database.errors import PersistenceError
from playerstore.infrastructure.store import GameStore
from playerstore.services.result import ServiceResult
from playerstore.services.upgrade import UpgradeService

logger = logging.getLogger(__name__)

_CONFIG_TEMPLATE = """\
# playerstore configuration. Only overrides belong here; defaults are
# built in. See `playerstore --help`.

[database]
{url_line}table_prefix = "{prefix}"

[features]
want_equipment_tab = true
want_bank_presets = true
spawn_iron_man_npcs = true
"""


class InitService:
    """Stateless: init runs before any store exists."""

    @staticmethod
    def init_store(
        root: Path,
        *,
        table_prefix: str = "",
        database_url: str | None = None,
    ) -> ServiceResult:
        """Write ``playerstore.toml`` (if absent), create tables, stamp head."""
        op = "init"
        root = root.resolve()
        created: list[str] = []

        try:
            root.mkdir(parents=True, exist_ok=True)
            config_path = root / CONFIG_FILENAME
            if not config_path.exists():
                url_line = f'url = "{database_url}"\n' if database_url else ""
                config_path.write_text(
                    _CONFIG_TEMPLATE.format(url_line=url_line, prefix=table_prefix),
                    encoding="utf-8",
                )
                created.append(CONFIG_FILENAME)
        except OSError as exc:
            return ServiceResult.failure(op, "INIT_FAILED", f"Cannot write config: {exc}")

        try:
            settings = StoreSettings.from_cli(config_path=str(config_path), root=root)
        except ValueError as exc:
            return ServiceResult.failure(op, "INIT_FAILED", f"Invalid configuration: {exc}")

        try:
            store = GameStore(settings)
        except PersistenceError as exc:
            return ServiceResult.failure(op, exc.code, str(exc))
        try:
            stamped = UpgradeService(store).stamp_current()
        finally:
            store.close()
        if not stamped.ok:
            return stamped

        logger.info("Initialized store at %s", root)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "root": str(root),
                "database_url": settings.database_url,
                "table_prefix": settings.database.table_prefix,
                "created": created,
                "revision": stamped.data["current"],
            },
        )
