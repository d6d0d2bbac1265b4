"""Tests for the item status store."""

from __future__ import annotations

import pytest
from sqlalchemy.engine import Engine

from playerstore.domain.items import ITEM_ID_UNASSIGNED, ItemInstance
from playerstore.infrastructure.database import item_status
from playerstore.infrastructure.database.errors import InvalidStateError
from playerstore.infrastructure.database.schema import Schema


class TestCreateAndGet:
    def test_create_returns_increasing_ids(self, db_engine: Engine, schema: Schema) -> None:
        with db_engine.begin() as conn:
            first = item_status.create(conn, schema, catalog_id=10)
            second = item_status.create(conn, schema, catalog_id=11)
        assert second > first > 0

    def test_get_round_trip(self, db_engine: Engine, schema: Schema) -> None:
        with db_engine.begin() as conn:
            iid = item_status.create(conn, schema, catalog_id=10, amount=50, noted=True, durability=80)
            item = item_status.get(conn, schema, iid)
        assert item == ItemInstance(instance_id=iid, catalog_id=10, amount=50, noted=True, durability=80)

    def test_get_missing(self, db_engine: Engine, schema: Schema) -> None:
        with db_engine.connect() as conn:
            assert item_status.get(conn, schema, 999) is None

    def test_ids_not_reused_after_delete(self, db_engine: Engine, schema: Schema) -> None:
        with db_engine.begin() as conn:
            iid = item_status.create(conn, schema, catalog_id=10)
            item_status.delete_status(conn, schema, iid)
            assert item_status.create(conn, schema, catalog_id=10) > iid


class TestUpdate:
    def test_update_status(self, db_engine: Engine, schema: Schema) -> None:
        with db_engine.begin() as conn:
            iid = item_status.create(conn, schema, catalog_id=10)
            item_status.update_status(conn, schema, iid, amount=3, noted=True, wielded=True, durability=5)
            item = item_status.get(conn, schema, iid)
        assert item is not None
        assert (item.amount, item.noted, item.wielded, item.durability) == (3, True, True, 5)

    def test_update_sentinel_rejected(self, db_engine: Engine, schema: Schema) -> None:
        with db_engine.begin() as conn, pytest.raises(InvalidStateError):
            item_status.update_status(
                conn, schema, ITEM_ID_UNASSIGNED, amount=1, noted=False, wielded=False, durability=100
            )


class TestBulk:
    def test_delete_missing_is_noop(self, db_engine: Engine, schema: Schema) -> None:
        with db_engine.begin() as conn:
            item_status.delete_status(conn, schema, 12345)
            item_status.delete_many(conn, schema, [])

    def test_delete_many_spans_chunks(self, db_engine: Engine, schema: Schema) -> None:
        with db_engine.begin() as conn:
            ids = [item_status.create(conn, schema, catalog_id=1) for _ in range(item_status.CHUNK_SIZE + 5)]
            item_status.delete_many(conn, schema, ids[:-1])
            assert item_status.in_use_ids(conn, schema) == {ids[-1]}

    def test_max_item_id(self, db_engine: Engine, schema: Schema) -> None:
        with db_engine.begin() as conn:
            assert item_status.max_item_id(conn, schema) == 0
            iid = item_status.create(conn, schema, catalog_id=1)
            assert item_status.max_item_id(conn, schema) == iid

    def test_put_many_updates_and_inserts(self, db_engine: Engine, schema: Schema) -> None:
        with db_engine.begin() as conn:
            existing = item_status.create(conn, schema, catalog_id=1)
            rows = [
                item_status.status_params(ItemInstance(instance_id=existing, catalog_id=1, amount=9)),
                item_status.status_params(ItemInstance(instance_id=existing + 100, catalog_id=2), wielded=True),
            ]
            inserted = item_status.put_many(conn, schema, rows)
            assert inserted == [existing + 100]
            updated = item_status.get(conn, schema, existing)
            created = item_status.get(conn, schema, existing + 100)
        assert updated is not None and updated.amount == 9
        assert created is not None and created.wielded is True

    def test_status_params_override(self) -> None:
        item = ItemInstance(instance_id=3, catalog_id=1, wielded=True)
        assert item_status.status_params(item, wielded=False)["wielded"] == 0
        assert item_status.status_params(item)["wielded"] == 1

    def test_chunked(self) -> None:
        assert [list(c) for c in item_status.chunked([1, 2, 3, 4, 5], size=2)] == [[1, 2], [3, 4], [5]]
