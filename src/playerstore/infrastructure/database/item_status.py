"""Item status store: one row of mutable attributes per item instance.

Every function takes the open connection of the caller's transaction and
never commits on its own. Booleans are stored as 0/1 integers.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import TYPE_CHECKING, Any

from sqlalchemy import bindparam, delete, func, insert, select, update

from playerstore.domain.items import ITEM_ID_UNASSIGNED, ItemInstance
from playerstore.infrastructure.database.errors import InvalidStateError

if TYPE_CHECKING:
    from sqlalchemy import Connection

    from playerstore.infrastructure.database.schema import Schema

# Keeps IN (...) lists under SQLite's bound-parameter limit.
CHUNK_SIZE = 500


def chunked(values: Sequence[int], size: int = CHUNK_SIZE) -> Iterator[Sequence[int]]:
    for start in range(0, len(values), size):
        yield values[start : start + size]


def status_params(item: ItemInstance, *, wielded: bool | None = None) -> dict[str, Any]:
    """Column values for *item*; *wielded* overrides the item's own flag."""
    return {
        "item_id": item.instance_id,
        "catalog_id": item.catalog_id,
        "amount": item.amount,
        "noted": int(item.noted),
        "wielded": int(item.wielded if wielded is None else wielded),
        "durability": item.durability,
    }


def create(
    conn: Connection,
    schema: Schema,
    *,
    catalog_id: int,
    amount: int = 1,
    noted: bool = False,
    wielded: bool = False,
    durability: int = 100,
) -> int:
    """Insert a status row and return the generated instance id."""
    result = conn.execute(
        insert(schema.item_statuses).values(
            catalog_id=catalog_id,
            amount=amount,
            noted=int(noted),
            wielded=int(wielded),
            durability=durability,
        )
    )
    return int(result.inserted_primary_key[0])


def update_status(
    conn: Connection,
    schema: Schema,
    instance_id: int,
    *,
    amount: int,
    noted: bool,
    wielded: bool,
    durability: int,
) -> None:
    """Overwrite the mutable attributes of *instance_id*.

    Raises:
        InvalidStateError: If *instance_id* is the unassigned sentinel.
    """
    if instance_id == ITEM_ID_UNASSIGNED:
        msg = "Cannot update the status of an item with no assigned id"
        raise InvalidStateError(msg)
    t = schema.item_statuses
    conn.execute(
        update(t)
        .where(t.c.item_id == instance_id)
        .values(amount=amount, noted=int(noted), wielded=int(wielded), durability=durability)
    )


def delete_status(conn: Connection, schema: Schema, instance_id: int) -> None:
    """Delete the status row of *instance_id*. Deleting a missing row is a no-op."""
    t = schema.item_statuses
    conn.execute(delete(t).where(t.c.item_id == instance_id))


def delete_many(conn: Connection, schema: Schema, instance_ids: Sequence[int]) -> None:
    t = schema.item_statuses
    for chunk in chunked(list(instance_ids)):
        conn.execute(delete(t).where(t.c.item_id.in_(chunk)))


def get(conn: Connection, schema: Schema, instance_id: int) -> ItemInstance | None:
    """Fetch one instance by id, or None."""
    t = schema.item_statuses
    row = conn.execute(select(t).where(t.c.item_id == instance_id)).first()
    if row is None:
        return None
    return row_to_item(row._mapping)


def row_to_item(row: Any) -> ItemInstance:
    """Build an ItemInstance from a mapping carrying the status columns."""
    return ItemInstance(
        instance_id=row["item_id"],
        catalog_id=row["catalog_id"],
        amount=row["amount"],
        noted=bool(row["noted"]),
        wielded=bool(row["wielded"]),
        durability=row["durability"],
    )


def max_item_id(conn: Connection, schema: Schema) -> int:
    """Highest instance id ever stored, or 0 for an empty store."""
    t = schema.item_statuses
    return int(conn.execute(select(func.max(t.c.item_id))).scalar() or 0)


def in_use_ids(conn: Connection, schema: Schema) -> set[int]:
    """Every instance id that currently has a status row."""
    t = schema.item_statuses
    return {int(r[0]) for r in conn.execute(select(t.c.item_id))}


def existing_ids(conn: Connection, schema: Schema, instance_ids: Iterable[int]) -> set[int]:
    t = schema.item_statuses
    found: set[int] = set()
    for chunk in chunked(sorted(set(instance_ids))):
        found.update(int(r[0]) for r in conn.execute(select(t.c.item_id).where(t.c.item_id.in_(chunk))))
    return found


def put_many(conn: Connection, schema: Schema, rows: Sequence[dict[str, Any]]) -> list[int]:
    """Batch upsert status rows that carry explicit ids.

    Existing rows are updated in one executemany; missing rows are inserted
    with their id. Returns the ids that had to be inserted.
    """
    if not rows:
        return []
    t = schema.item_statuses
    present = existing_ids(conn, schema, (r["item_id"] for r in rows))

    updates = [{f"b_{k}": v for k, v in r.items()} for r in rows if r["item_id"] in present]
    inserts = [r for r in rows if r["item_id"] not in present]

    if updates:
        stmt = (
            update(t)
            .where(t.c.item_id == bindparam("b_item_id"))
            .values(
                catalog_id=bindparam("b_catalog_id"),
                amount=bindparam("b_amount"),
                noted=bindparam("b_noted"),
                wielded=bindparam("b_wielded"),
                durability=bindparam("b_durability"),
            )
        )
        conn.execute(stmt, updates)
    if inserts:
        conn.execute(insert(t), inserts)
    return [r["item_id"] for r in inserts]
