"""CheckService: item identity integrity and repair.

Five categories of issue, all about the item id lifecycle:

- ``missing_status``: a container row names an id with no status row.
- ``orphan_status``: a status row no container references.
- ``unregistered``: a container references an id the registry lacks.
- ``stale_registry``: a registered id has no status row.
- ``duplicate_reference``: one id appears in more than one container row.

``fix`` repairs everything except duplicates in one transaction, then
resyncs the registry from the status table.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, func, select, union_all

from playerstore.infrastructure.database import item_status
from playerstore.infrastructure.database.errors import PersistenceError
from playerstore.services._helpers import backup_database
from playerstore.services.base import BaseService
from playerstore.services.result import ServiceResult
from playerstore.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from sqlalchemy import Connection

    from playerstore.infrastructure.database.schema import Schema

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"

CAT_MISSING_STATUS = "missing_status"
CAT_ORPHAN_STATUS = "orphan_status"
CAT_UNREGISTERED = "unregistered"
CAT_STALE_REGISTRY = "stale_registry"
CAT_DUPLICATE = "duplicate_reference"

_SEVERITY_RANK = {SEVERITY_WARNING: 0, SEVERITY_ERROR: 1}


def _issue(category: str, severity: str, item_id: int, message: str, fix_action: str | None) -> dict[str, Any]:
    return {
        "category": category,
        "severity": severity,
        "item_id": item_id,
        "message": message,
        "fix_action": fix_action,
    }


def _referenced(conn: Connection, schema: Schema) -> dict[int, int]:
    """Every id referenced by a container row, with its reference count."""
    refs = union_all(*(select(t.c.item_id) for t in schema.containers)).subquery()
    rows = conn.execute(select(refs.c.item_id, func.count()).group_by(refs.c.item_id))
    return {int(item_id): int(count) for item_id, count in rows}


class CheckService(BaseService):
    """Scans the store and registry for broken item identities."""

    @traced
    def check(self, *, min_severity: str = SEVERITY_WARNING) -> ServiceResult:
        """Report integrity issues without modifying anything."""
        op = "check"
        try:
            with self._store.connect(op) as conn:
                with trace_span("scan_store"):
                    statuses = item_status.in_use_ids(conn, self._store.schema)
                    referenced = _referenced(conn, self._store.schema)
                registered = self._store.registry.snapshot()
        except PersistenceError as exc:
            return self._failure(op, exc)

        with trace_span("compare"):
            issues = self._compare(statuses, referenced, registered)
        threshold = _SEVERITY_RANK[min_severity]
        issues = [i for i in issues if _SEVERITY_RANK[i["severity"]] >= threshold]
        return ServiceResult(ok=True, op=op, data={"issues": issues, "count": len(issues)})

    @traced
    def fix(self) -> ServiceResult:
        """Purge orphans, drop dangling container rows, resync the registry."""
        op = "fix"
        warnings: list[str] = []
        schema = self._store.schema
        try:
            backup = self._backup()
            if backup is None:
                warnings.append("No file backup taken (not a SQLite file database)")
            with self._store.transaction(op) as txn, txn.registry.locked():
                statuses = item_status.in_use_ids(txn.conn, schema)
                referenced = _referenced(txn.conn, schema)

                dangling = sorted(set(referenced) - statuses)
                for chunk in item_status.chunked(dangling):
                    for table in schema.containers:
                        txn.conn.execute(delete(table).where(table.c.item_id.in_(chunk)))

                orphans = sorted(statuses - set(referenced))
                item_status.delete_many(txn.conn, schema, orphans)

                live = statuses - set(orphans)
                txn.registry.load(live)
        except PersistenceError as exc:
            return self._failure(op, exc)

        fixes = [f"removed container rows for missing item {i}" for i in dangling]
        fixes.extend(f"purged orphan item {i}" for i in orphans)
        duplicates = [i for i, n in referenced.items() if n > 1]
        if duplicates:
            warnings.append(f"{len(duplicates)} item ids are held by more than one container row")
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "fixes": fixes,
                "count": len(fixes),
                "registered": len(live),
                "backup_path": str(backup) if backup else None,
            },
            warnings=warnings,
        )

    def _compare(
        self,
        statuses: set[int],
        referenced: dict[int, int],
        registered: frozenset[int],
    ) -> list[dict[str, Any]]:
        issues: list[dict[str, Any]] = []
        for item_id in sorted(set(referenced) - statuses):
            issues.append(
                _issue(
                    CAT_MISSING_STATUS,
                    SEVERITY_ERROR,
                    item_id,
                    f"Container row references item {item_id} which has no status row",
                    "remove_container_rows",
                )
            )
        for item_id in sorted(statuses - set(referenced)):
            issues.append(
                _issue(
                    CAT_ORPHAN_STATUS,
                    SEVERITY_WARNING,
                    item_id,
                    f"Item {item_id} has a status row but is in no container",
                    "purge_status",
                )
            )
        for item_id in sorted(set(referenced) - registered):
            issues.append(
                _issue(
                    CAT_UNREGISTERED,
                    SEVERITY_ERROR,
                    item_id,
                    f"Item {item_id} is stored in a container but not registered",
                    "resync_registry",
                )
            )
        for item_id in sorted(registered - statuses):
            issues.append(
                _issue(
                    CAT_STALE_REGISTRY,
                    SEVERITY_WARNING,
                    item_id,
                    f"Registered item {item_id} has no status row",
                    "resync_registry",
                )
            )
        for item_id, count in sorted(referenced.items()):
            if count > 1:
                issues.append(
                    _issue(
                        CAT_DUPLICATE,
                        SEVERITY_ERROR,
                        item_id,
                        f"Item {item_id} is referenced by {count} container rows",
                        None,
                    )
                )
        return issues

    def _backup(self) -> Path | None:
        settings = self._store.settings
        self._store.checkpoint()
        return backup_database(
            settings.database_url,
            settings.data_dir / "backups",
            max_count=settings.database.backup_max_count,
        )
