"""ItemIdRegistry: the process-wide set of in-use item instance ids.

INVARIANT: an id is in the registry iff a status row for it has been
committed (or is being written by the transaction holding the lock).
Ids come from the status table's auto-increment key, so uniqueness is
guaranteed by the store; the registry tracks liveness for retirement
and diagnostics.

The registry is an explicit object owned by :class:`GameStore`, never a
module global. Every mutation runs under one re-entrant lock, exposed
through :meth:`locked` so callers can make multi-id decisions atomically.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from playerstore.infrastructure.database import item_status

if TYPE_CHECKING:
    from sqlalchemy import Connection

    from playerstore.domain.items import ItemInstance
    from playerstore.infrastructure.database.schema import Schema

logger = logging.getLogger(__name__)


class ItemIdRegistry:
    """Thread-safe registry of live item instance ids."""

    def __init__(self, ids: Iterable[int] = ()) -> None:
        self._lock = threading.RLock()
        self._ids: set[int] = set(ids)

    @contextmanager
    def locked(self) -> Iterator[ItemIdRegistry]:
        """Hold the registry lock for a compound operation."""
        with self._lock:
            yield self

    def assign(
        self,
        conn: Connection,
        schema: Schema,
        item: ItemInstance,
        *,
        wielded: bool | None = None,
    ) -> int:
        """Mint an id for *item* by inserting its status row.

        The new id is stamped onto *item* and registered. *wielded*
        overrides the flag written to the status row.

        Raises:
            PersistenceError: If the store rejects the insert. Nothing is
                registered and *item* keeps its sentinel id.
        """
        with self._lock:
            new_id = item_status.create(
                conn,
                schema,
                catalog_id=item.catalog_id,
                amount=item.amount,
                noted=item.noted,
                wielded=item.wielded if wielded is None else wielded,
                durability=item.durability,
            )
            if new_id in self._ids:
                logger.warning("Store handed out id %d which is already registered", new_id)
            self._ids.add(new_id)
            item.instance_id = new_id
            logger.debug("Assigned item id %d (catalog %d)", new_id, item.catalog_id)
            return new_id

    def retire(self, instance_id: int) -> bool:
        """Forget *instance_id*. Returns False if it was not registered."""
        with self._lock:
            if instance_id not in self._ids:
                return False
            self._ids.discard(instance_id)
            return True

    def retire_many(self, instance_ids: Iterable[int]) -> int:
        with self._lock:
            return sum(1 for i in instance_ids if self.retire(i))

    def track(self, instance_id: int) -> None:
        """Register an id whose status row already exists."""
        with self._lock:
            self._ids.add(instance_id)

    def contains(self, instance_id: int) -> bool:
        with self._lock:
            return instance_id in self._ids

    def __contains__(self, instance_id: object) -> bool:
        return isinstance(instance_id, int) and self.contains(instance_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._ids)

    def load(self, ids: Iterable[int]) -> None:
        """Replace the registered set (startup seeding and resync)."""
        with self._lock:
            self._ids = set(ids)

    def snapshot(self) -> frozenset[int]:
        with self._lock:
            return frozenset(self._ids)
