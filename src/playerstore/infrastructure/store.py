"""GameStore: the single dependency injected into every repository and service.

The store owns the database engine, the prefixed schema, and the item id
registry. :meth:`GameStore.transaction` is the only place a write
transaction begins, commits, or rolls back:

- **DB**: one connection per transaction, opened with ``BEGIN IMMEDIATE``
  on SQLite, committed on normal exit and rolled back on any exception.
- **Registry**: kept in step with the outcome. After commit, ids purged
  during the transaction (and not re-persisted) are retired. After
  rollback, ids minted during the transaction are retired and their
  instances reset to the unassigned sentinel.
- **Errors**: SQLAlchemy errors leave the block as
  :class:`~playerstore.infrastructure.database.errors.PersistenceError`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from playerstore.infrastructure.database import item_status
from playerstore.infrastructure.database.engine import (
    WRITE_LOCK_OPTION,
    create_db_engine,
    init_database,
)
from playerstore.infrastructure.database.errors import translate_errors
from playerstore.infrastructure.database.item_registry import ItemIdRegistry
from playerstore.infrastructure.database.schema import Schema, build_schema

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from playerstore.config.models import FeaturesConfig
    from playerstore.config.settings import StoreSettings
    from playerstore.domain.items import ItemInstance

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# StoreTransaction: yielded to callers within transaction()
# ---------------------------------------------------------------------------


@dataclass
class StoreTransaction:
    """Active write transaction with its registry journal.

    Ids must be minted through :meth:`assign` so the store can undo the
    registration if the transaction rolls back.
    """

    conn: Connection
    schema: Schema
    registry: ItemIdRegistry
    features: FeaturesConfig
    minted: list[ItemInstance] = field(default_factory=list, repr=False)
    inserted: set[int] = field(default_factory=set, repr=False)
    purged: set[int] = field(default_factory=set, repr=False)
    kept: set[int] = field(default_factory=set, repr=False)

    def assign(self, item: ItemInstance, *, wielded: bool | None = None) -> int:
        """Mint an id for *item* via the registry, journaled for rollback."""
        new_id = self.registry.assign(self.conn, self.schema, item, wielded=wielded)
        self.minted.append(item)
        self.kept.add(new_id)
        return new_id

    def note_purged(self, ids: Iterable[int]) -> None:
        """Record status rows deleted in this transaction."""
        self.purged.update(ids)

    def note_kept(self, ids: Iterable[int], *, inserted: Iterable[int] = ()) -> None:
        """Record ids persisted in this transaction.

        *inserted* are ids whose status row did not exist before; they are
        registered now and retired again if the transaction rolls back.
        """
        for instance_id in ids:
            self.kept.add(instance_id)
            self.registry.track(instance_id)
        self.inserted.update(inserted)

    def settle_commit(self) -> None:
        retired = self.registry.retire_many(sorted(self.purged - self.kept))
        if retired:
            logger.debug("Retired %d item ids after commit", retired)

    def settle_rollback(self) -> None:
        minted_ids = [item.instance_id for item in self.minted if item.is_assigned]
        self.registry.retire_many(minted_ids)
        self.registry.retire_many(sorted(self.inserted))
        for item in self.minted:
            item.unassign()
        if minted_ids:
            logger.debug("Rolled back %d minted item ids", len(minted_ids))


# ---------------------------------------------------------------------------
# GameStore: the repository root
# ---------------------------------------------------------------------------


class GameStore:
    """Database engine, schema, and item registry for one deployment.

    Constructed once at startup from :class:`StoreSettings`. Creates any
    missing tables and seeds the registry with every id that has a status
    row.
    """

    def __init__(self, settings: StoreSettings, *, create_tables: bool = True) -> None:
        self._settings = settings
        self._schema = build_schema(settings.database.table_prefix, settings.skills.names)
        self._engine: Engine = create_db_engine(
            settings.database_url,
            busy_timeout=settings.database.busy_timeout,
        )
        with translate_errors("open store"):
            if create_tables:
                init_database(self._engine, self._schema)
            with self._engine.connect() as conn:
                ids = item_status.in_use_ids(conn, self._schema)
        self._registry = ItemIdRegistry(ids)
        logger.debug("Store opened with %d live item ids", len(ids))

    @property
    def settings(self) -> StoreSettings:
        return self._settings

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    @property
    def schema(self) -> Schema:
        return self._schema

    @property
    def registry(self) -> ItemIdRegistry:
        return self._registry

    @property
    def features(self) -> FeaturesConfig:
        return self._settings.features

    @contextmanager
    def connect(self, operation: str = "read") -> Iterator[Connection]:
        """Read-only connection with a deferred transaction."""
        with translate_errors(operation), self._engine.connect() as conn:
            yield conn

    @contextmanager
    def transaction(self, operation: str = "transaction") -> Iterator[StoreTransaction]:
        """Scoped write transaction; commit on success, rollback on failure.

        Transactions do not nest: open one per save and pass the yielded
        :class:`StoreTransaction` down to every step.

        Usage::

            with store.transaction("save player") as txn:
                replace_container(txn, Container.INVENTORY, pid, items)
        """
        txn: StoreTransaction | None = None
        with structlog.contextvars.bound_contextvars(operation=operation):
            try:
                with translate_errors(operation), self._engine.connect() as conn:
                    conn.execution_options(**{WRITE_LOCK_OPTION: True})
                    with conn.begin():
                        txn = StoreTransaction(
                            conn=conn,
                            schema=self._schema,
                            registry=self._registry,
                            features=self.features,
                        )
                        yield txn
            except BaseException:
                if txn is not None:
                    txn.settle_rollback()
                logger.warning("%s rolled back", operation)
                raise
            if txn is not None:
                txn.settle_commit()

    def resync_registry(self) -> int:
        """Reload the registry from the status table. Returns the id count."""
        with self.connect("resync registry") as conn, self._registry.locked():
            ids = item_status.in_use_ids(conn, self._schema)
            self._registry.load(ids)
        return len(ids)

    def checkpoint(self) -> None:
        """Fold the SQLite write-ahead log into the main database file.

        Runs outside any transaction on a raw connection; a no-op on other
        backends.
        """
        if self._engine.dialect.name != "sqlite":
            return
        raw = self._engine.raw_connection()
        try:
            raw.driver_connection.execute("PRAGMA wal_checkpoint(TRUNCATE)")
        finally:
            raw.close()

    def close(self) -> None:
        self._engine.dispose()
