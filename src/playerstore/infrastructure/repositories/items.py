"""Incremental item operations used between full saves.

Each call runs in its own transaction and holds the registry lock for
its duration, minting an id first when the item has none.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import delete

from playerstore.domain.items import Container, ItemInstance
from playerstore.infrastructure.database import containers, item_status

if TYPE_CHECKING:
    from playerstore.infrastructure.store import GameStore

logger = logging.getLogger(__name__)


class ItemRepository:
    def __init__(self, store: GameStore) -> None:
        self._store = store

    def assign_item_id(self, item: ItemInstance) -> int:
        """Mint a new id for *item*, even if it already carries one."""
        with self._store.transaction("assign item id") as txn, txn.registry.locked():
            return txn.assign(item)

    def add_item_to_player(self, item: ItemInstance) -> int:
        """Ensure *item* has an identity; returns the (possibly existing) id."""
        if item.is_assigned:
            return item.instance_id
        return self.assign_item_id(item)

    def remove_item_from_player(self, item: ItemInstance) -> None:
        """Purge *item*'s status row (and any container row naming it) and retire its id.

        The instance keeps its id attribute; the caller drops the object.
        """
        if not item.is_assigned:
            return
        with self._store.transaction("remove item") as txn, txn.registry.locked():
            for table in txn.schema.containers:
                txn.conn.execute(delete(table).where(table.c.item_id == item.instance_id))
            item_status.delete_status(txn.conn, txn.schema, item.instance_id)
            txn.note_purged([item.instance_id])
        logger.debug("Removed item %d", item.instance_id)

    def update_item(self, item: ItemInstance) -> None:
        """Write the mutable attributes of an identified item.

        Raises:
            InvalidStateError: If *item* has no id.
        """
        with self._store.transaction("update item") as txn:
            item_status.update_status(
                txn.conn,
                txn.schema,
                item.instance_id,
                amount=item.amount,
                noted=item.noted,
                wielded=item.wielded,
                durability=item.durability,
            )

    def get_item(self, instance_id: int) -> ItemInstance | None:
        with self._store.connect("get item") as conn:
            return item_status.get(conn, self._store.schema, instance_id)

    def max_item_id(self) -> int:
        with self._store.connect("max item id") as conn:
            return item_status.max_item_id(conn, self._store.schema)

    # ------------------------------------------------------------------
    # Single-row container changes
    # ------------------------------------------------------------------

    def inventory_add(self, player_id: int, item: ItemInstance, slot: int) -> int:
        return self._add(Container.INVENTORY, player_id, item, slot)

    def inventory_remove(self, player_id: int, item: ItemInstance) -> int:
        return self._remove(Container.INVENTORY, player_id, item)

    def equipment_add(self, player_id: int, item: ItemInstance) -> int:
        return self._add(Container.EQUIPMENT, player_id, item, None)

    def equipment_remove(self, player_id: int, item: ItemInstance) -> int:
        return self._remove(Container.EQUIPMENT, player_id, item)

    def bank_add(self, player_id: int, item: ItemInstance, slot: int) -> int:
        return self._add(Container.BANK, player_id, item, slot)

    def bank_remove(self, player_id: int, item: ItemInstance) -> int:
        return self._remove(Container.BANK, player_id, item)

    def _add(self, container: Container, player_id: int, item: ItemInstance, slot: int | None) -> int:
        with self._store.transaction(f"{container} add") as txn, txn.registry.locked():
            return containers.add_item(txn, container, player_id, item, slot=slot)

    def _remove(self, container: Container, player_id: int, item: ItemInstance) -> int:
        if not item.is_assigned:
            return 0
        with self._store.transaction(f"{container} remove") as txn, txn.registry.locked():
            return containers.remove_item(txn, container, player_id, item.instance_id)
