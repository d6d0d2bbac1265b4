"""Container replacement: inventory, equipment and bank rows for one player.

A save replaces a container wholesale:

1. Read the prior instance ids, delete every row of the container for the
   player, then purge the status rows of prior ids that the new snapshot
   does not keep and no remaining container row references.
2. Mint an id for every snapshot item that has none.
3. Upsert status rows for the items that already had an id.
4. Batch-insert one container row per item.

The wielded flag written to the status row is forced by the container
(see :func:`playerstore.domain.items.forced_wielded`). Inventory and bank
slots are the 0-based positions in the snapshot; equipment has no slot.

All functions run inside a :class:`~playerstore.infrastructure.store.StoreTransaction`
and never commit. Callers that touch ids hold the registry lock.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select, union

from playerstore.domain.items import Container, ItemInstance, forced_wielded
from playerstore.infrastructure.database import item_status
from playerstore.infrastructure.database.errors import InvalidStateError

if TYPE_CHECKING:
    from sqlalchemy import Connection, Table

    from playerstore.infrastructure.database.schema import Schema
    from playerstore.infrastructure.store import StoreTransaction

logger = logging.getLogger(__name__)

SLOTTED = frozenset({Container.INVENTORY, Container.BANK})


def container_table(schema: Schema, container: Container) -> Table:
    if container is Container.INVENTORY:
        return schema.inventory
    if container is Container.EQUIPMENT:
        return schema.equipment
    return schema.bank


def check_unique_ids(items: Iterable[ItemInstance]) -> None:
    """Raise InvalidStateError if an assigned id appears more than once."""
    seen: set[int] = set()
    for item in items:
        if not item.is_assigned:
            continue
        if item.instance_id in seen:
            msg = f"Item id {item.instance_id} appears more than once in one player's containers"
            raise InvalidStateError(msg)
        seen.add(item.instance_id)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def load_container(
    conn: Connection,
    schema: Schema,
    container: Container,
    player_id: int,
) -> list[ItemInstance]:
    """Load the items of one container, slot-ordered where slots exist."""
    table = container_table(schema, container)
    st = schema.item_statuses
    stmt = (
        select(st)
        .select_from(table.join(st, table.c.item_id == st.c.item_id))
        .where(table.c.player_id == player_id)
    )
    if container in SLOTTED:
        stmt = stmt.order_by(table.c.slot)
    rows = conn.execute(stmt).mappings().all()
    return [item_status.row_to_item(row) for row in rows]


def container_ids(conn: Connection, table: Table, player_id: int) -> list[int]:
    rows = conn.execute(select(table.c.item_id).where(table.c.player_id == player_id))
    return [int(r[0]) for r in rows]


def referenced_ids(conn: Connection, schema: Schema, candidates: Iterable[int]) -> set[int]:
    """The subset of *candidates* still referenced by any container row."""
    found: set[int] = set()
    for chunk in item_status.chunked(sorted(set(candidates))):
        stmt = union(
            *(select(t.c.item_id).where(t.c.item_id.in_(chunk)) for t in schema.containers)
        )
        found.update(int(r[0]) for r in conn.execute(stmt))
    return found


# ---------------------------------------------------------------------------
# Wholesale replacement
# ---------------------------------------------------------------------------


def replace_container(
    txn: StoreTransaction,
    container: Container,
    player_id: int,
    items: Sequence[ItemInstance],
    *,
    keep: Iterable[int] | None = None,
) -> None:
    """Replace every row of *container* for *player_id* with *items*.

    Args:
        keep: Ids that must not be purged even if they leave this
            container (the rest of the player's snapshot). Defaults to the
            ids in *items*.
    """
    check_unique_ids(items)
    conn, schema = txn.conn, txn.schema
    table = container_table(schema, container)

    keep_ids = {i.instance_id for i in items if i.is_assigned}
    if keep is not None:
        keep_ids.update(keep)

    # 1. drop prior rows, purge what nothing references any more
    prior = container_ids(conn, table, player_id)
    conn.execute(delete(table).where(table.c.player_id == player_id))
    candidates = set(prior) - keep_ids
    if candidates:
        purge = candidates - referenced_ids(conn, schema, candidates)
        if purge:
            item_status.delete_many(conn, schema, sorted(purge))
            txn.note_purged(purge)
            logger.debug("Purged %d item statuses from %s of player %d", len(purge), container, player_id)

    # 2. mint ids for new items, 3. upsert the rest
    upserts: list[dict[str, Any]] = []
    for item in items:
        wielded = forced_wielded(container, item)
        if item.is_assigned:
            upserts.append(item_status.status_params(item, wielded=wielded))
        else:
            txn.assign(item, wielded=wielded)
    inserted = item_status.put_many(conn, schema, upserts)
    txn.note_kept([row["item_id"] for row in upserts], inserted=inserted)

    # 4. container rows
    if items:
        rows = [_container_row(container, player_id, item, slot) for slot, item in enumerate(items)]
        conn.execute(insert(table), rows)


def _container_row(container: Container, player_id: int, item: ItemInstance, slot: int) -> dict[str, int]:
    row = {"player_id": player_id, "item_id": item.instance_id}
    if container in SLOTTED:
        row["slot"] = slot
    return row


# ---------------------------------------------------------------------------
# Incremental operations
# ---------------------------------------------------------------------------


def add_item(
    txn: StoreTransaction,
    container: Container,
    player_id: int,
    item: ItemInstance,
    *,
    slot: int | None = None,
) -> int:
    """Persist *item* into one container row, minting or refreshing its status.

    Returns the instance id.

    Raises:
        InvalidStateError: If *slot* is missing for a slotted container.
    """
    if container in SLOTTED and slot is None:
        msg = f"A slot is required to add an item to the {container}"
        raise InvalidStateError(msg)
    wielded = forced_wielded(container, item)
    if item.is_assigned:
        inserted = item_status.put_many(
            txn.conn, txn.schema, [item_status.status_params(item, wielded=wielded)]
        )
        txn.note_kept([item.instance_id], inserted=inserted)
    else:
        txn.assign(item, wielded=wielded)

    table = container_table(txn.schema, container)
    row = {"player_id": player_id, "item_id": item.instance_id}
    if container in SLOTTED:
        row["slot"] = slot
    txn.conn.execute(insert(table).values(**row))
    return item.instance_id


def remove_item(txn: StoreTransaction, container: Container, player_id: int, instance_id: int) -> int:
    """Delete the container row(s) of *instance_id* for *player_id*.

    The status row goes too once no container references the id. Returns
    the number of container rows removed.
    """
    table = container_table(txn.schema, container)
    result = txn.conn.execute(
        delete(table).where(table.c.player_id == player_id, table.c.item_id == instance_id)
    )
    if not referenced_ids(txn.conn, txn.schema, [instance_id]):
        item_status.delete_status(txn.conn, txn.schema, instance_id)
        txn.note_purged([instance_id])
    return int(result.rowcount or 0)
