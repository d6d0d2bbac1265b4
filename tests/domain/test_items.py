"""Tests for item instances and container-forced flags."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from playerstore.domain.items import (
    ITEM_ID_UNASSIGNED,
    Container,
    ItemInstance,
    forced_wielded,
)


class TestItemInstance:
    def test_defaults(self) -> None:
        item = ItemInstance(catalog_id=10)
        assert item.amount == 1
        assert item.noted is False
        assert item.wielded is False
        assert item.durability == 100
        assert item.instance_id == ITEM_ID_UNASSIGNED
        assert not item.is_assigned

    def test_assignment_and_unassign(self) -> None:
        item = ItemInstance(catalog_id=10)
        item.instance_id = 42
        assert item.is_assigned
        item.unassign()
        assert item.instance_id == ITEM_ID_UNASSIGNED

    def test_negative_amount_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ItemInstance(catalog_id=10, amount=-1)

    def test_assignment_is_validated(self) -> None:
        item = ItemInstance(catalog_id=10)
        with pytest.raises(ValidationError):
            item.amount = -3

    def test_status_excludes_identity(self) -> None:
        item = ItemInstance(catalog_id=10, amount=5, noted=True, instance_id=7)
        assert item.status() == (10, 5, True, False, 100)


class TestForcedWielded:
    def test_equipment_always_wielded(self) -> None:
        assert forced_wielded(Container.EQUIPMENT, ItemInstance(catalog_id=1)) is True

    def test_bank_never_wielded(self) -> None:
        assert forced_wielded(Container.BANK, ItemInstance(catalog_id=1, wielded=True)) is False

    @pytest.mark.parametrize("wielded", [True, False])
    def test_inventory_keeps_own_flag(self, wielded: bool) -> None:
        item = ItemInstance(catalog_id=1, wielded=wielded)
        assert forced_wielded(Container.INVENTORY, item) is wielded
