"""Item instances and the containers that hold them.

An *item instance* is one concrete copy of a catalog item with its own
mutable state (stack amount, noted flag, wielded flag, durability). The
catalog definition itself lives outside this package; only ``catalog_id``
is stored here.

INVARIANT: ``instance_id`` is assigned once by the item registry and is
never reused while any container references it.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field

ITEM_ID_UNASSIGNED = -1
DEFAULT_DURABILITY = 100


class Container(StrEnum):
    """The per-player containers an item instance can live in."""

    INVENTORY = "inventory"
    EQUIPMENT = "equipment"
    BANK = "bank"


class ItemInstance(BaseModel):
    """One concrete, uniquely identified item with mutable per-copy state.

    Not frozen: the registry stamps ``instance_id`` onto the object when it
    mints an identity, and game logic mutates the status fields in place.
    """

    model_config = {"validate_assignment": True}

    catalog_id: int
    amount: int = Field(default=1, ge=0)
    noted: bool = False
    wielded: bool = False
    durability: int = DEFAULT_DURABILITY
    instance_id: int = ITEM_ID_UNASSIGNED

    @property
    def is_assigned(self) -> bool:
        """Whether the instance has been given a persistent identity."""
        return self.instance_id != ITEM_ID_UNASSIGNED

    def unassign(self) -> None:
        """Drop the identity (used when a mint is rolled back)."""
        self.instance_id = ITEM_ID_UNASSIGNED

    def status(self) -> tuple[int, int, bool, bool, int]:
        """The persisted attribute tuple, identity excluded."""
        return (self.catalog_id, self.amount, self.noted, self.wielded, self.durability)


def forced_wielded(container: Container, item: ItemInstance) -> bool:
    """The wielded flag persisted for *item* when stored in *container*.

    Wielded is container-contextual: anything worn is wielded, anything
    banked is not. The inventory keeps the item's own flag.
    """
    if container is Container.EQUIPMENT:
        return True
    if container is Container.BANK:
        return False
    return item.wielded
