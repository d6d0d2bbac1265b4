"""UpgradeService: bring the store schema to the Alembic head revision.

``apply`` backs the database up, then either migrates or, for tables that
were created before version tracking existed, stamps them at head. An
integrity check runs afterwards and its errors come back as warnings.
"""

from __future__ import annotations

import logging
from typing import Any

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from playerstore.infrastructure.database.migrations import build_config, stamp_head, version_table
from playerstore.services.base import BaseService
from playerstore.services.check import SEVERITY_ERROR, CheckService
from playerstore.services.result import ServiceResult
from playerstore.services.telemetry import traced

logger = logging.getLogger(__name__)

_OP = "upgrade"


class UpgradeService(BaseService):
    def _config(self) -> Config:
        settings = self._store.settings
        return build_config(
            settings.database_url,
            table_prefix=settings.database.table_prefix,
            skills=settings.skills.names,
        )

    def _current_revision(self, cfg: Config) -> str | None:
        with self._store.engine.connect() as conn:
            ctx = MigrationContext.configure(conn, opts={"version_table": version_table(cfg)})
            return ctx.get_current_revision()

    def _predates_versioning(self) -> bool:
        players = self._store.schema.players.name
        return players in inspect(self._store.engine).get_table_names()

    @traced
    def check_pending(self) -> ServiceResult:
        """Revisions between the stored version and head, newest first."""
        try:
            cfg = self._config()
            script = ScriptDirectory.from_config(cfg)
            head = script.get_current_head()
            current = self._current_revision(cfg)
        except SQLAlchemyError as exc:
            return ServiceResult.failure(_OP, "CHECK_FAILED", f"Failed to check migrations: {exc}")

        pending: list[dict[str, Any]] = []
        if head is not None and current != head:
            pending = [
                {"revision": rev.revision, "description": rev.doc or ""}
                for rev in script.iterate_revisions(head, current or "base")
                if rev.revision != current
            ]
        return ServiceResult(
            ok=True,
            op=_OP,
            data={"pending_count": len(pending), "pending": pending, "current": current, "head": head},
        )

    @traced
    def apply(self) -> ServiceResult:
        checked = self.check_pending()
        if not checked.ok:
            return checked
        head = checked.data["head"]
        count = checked.data["pending_count"]
        if count == 0:
            return ServiceResult(
                ok=True,
                op=_OP,
                data={"applied_count": 0, "current": head, "message": "Database is already up to date"},
            )

        try:
            backup_path = CheckService(self._store)._backup()
        except OSError as exc:
            return ServiceResult.failure(_OP, "BACKUP_FAILED", f"Backup failed: {exc}")

        try:
            cfg = self._config()
            if checked.data["current"] is None and self._predates_versioning():
                stamp_head(cfg)
            else:
                command.upgrade(cfg, "head")
        except SQLAlchemyError as exc:
            return ServiceResult.failure(
                _OP,
                "MIGRATION_FAILED",
                f"Migration failed: {exc}. Backup at: {backup_path}",
                backup_path=str(backup_path),
            )
        logger.info("Upgraded store to %s (%d revisions)", head, count)

        return ServiceResult(
            ok=True,
            op=_OP,
            data={
                "applied_count": count,
                "current": head,
                "backup_path": str(backup_path) if backup_path else None,
            },
            warnings=self._post_check_warnings(),
        )

    def _post_check_warnings(self) -> list[str]:
        report = CheckService(self._store).check(min_severity=SEVERITY_ERROR)
        if not report.ok:
            return ["Post-migration integrity check could not run"]
        errors = len(report.data.get("issues", []))
        return [f"Post-migration integrity check found {errors} errors"] if errors else []

    @traced
    def stamp_current(self) -> ServiceResult:
        """Record head as the stored version without running any migration."""
        try:
            cfg = self._config()
            stamp_head(cfg)
            head = ScriptDirectory.from_config(cfg).get_current_head()
        except SQLAlchemyError as exc:
            return ServiceResult.failure(_OP, "STAMP_FAILED", f"Failed to stamp database: {exc}")
        logger.info("Stamped database at %s", head)
        return ServiceResult(ok=True, op=_OP, data={"stamped": True, "current": head})
