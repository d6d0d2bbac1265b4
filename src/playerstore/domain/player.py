"""PlayerAggregate: the unit of persistence for one player.

The aggregate bundles the profile row, the three item containers, bank
presets, social lists, quest/achievement progress, cache entries, kill
counters, and per-skill levels/experience. The save orchestrator owns an
aggregate exclusively for the duration of a save or load call.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from playerstore.domain.items import ItemInstance


class PlayerData(BaseModel):
    """Basic profile fields stored on the players row."""

    player_id: int = -1
    group_id: int = 10
    combat_style: int = 0
    combat_level: int = 3
    total_level: int = 0
    login_date: int = 0
    login_ip: str = "0.0.0.0"
    x: int = 0
    y: int = 0
    fatigue: int = 0
    kills: int = 0
    deaths: int = 0
    npc_kills: int = 0
    iron_man: int = 0
    iron_man_restriction: int = 1
    hc_iron_man_death: int = 0
    quest_points: int = 0
    block_chat: bool = False
    block_private: bool = False
    block_trade: bool = False
    block_duel: bool = True
    camera_auto: bool = False
    one_mouse: bool = False
    sound_off: bool = False
    bank_size: int = 192
    mute_expires: int = 0
    hair_colour: int = 2
    top_colour: int = 8
    trouser_colour: int = 14
    skin_colour: int = 0
    head_sprite: int = 1
    body_sprite: int = 2
    male: bool = True


class BankPreset(BaseModel):
    """A saved bank loadout: two opaque serialized container snapshots."""

    model_config = {"ser_json_bytes": "base64", "val_json_bytes": "base64"}

    slot: int
    inventory: bytes = b""
    equipment: bytes = b""


class CacheEntry(BaseModel):
    """Arbitrary key-value state attached to a player."""

    key: str
    type: int = 0
    value: str = ""


class PlayerAggregate(BaseModel):
    """One player's full mutable state bundle.

    Attributes:
        inventory: Slot-ordered; slot is the list position.
        equipment: Unordered worn items.
        bank: Slot-ordered; slot is the list position.
        friends/ignores: Username hashes (see :mod:`playerstore.domain.usernames`).
        quests: quest id -> stage.
        achievements: achievement id -> status.
        npc_kills: npc id -> kill count.
        skills/experience: skill id -> current level / experience.
    """

    player_id: int
    username: str
    data: PlayerData = Field(default_factory=PlayerData)
    inventory: list[ItemInstance] = Field(default_factory=list)
    equipment: list[ItemInstance] = Field(default_factory=list)
    bank: list[ItemInstance] = Field(default_factory=list)
    bank_presets: list[BankPreset] = Field(default_factory=list)
    friends: list[int] = Field(default_factory=list)
    ignores: list[int] = Field(default_factory=list)
    quests: dict[int, int] = Field(default_factory=dict)
    achievements: dict[int, int] = Field(default_factory=dict)
    cache: list[CacheEntry] = Field(default_factory=list)
    npc_kills: dict[int, int] = Field(default_factory=dict)
    skills: dict[int, int] = Field(default_factory=dict)
    experience: dict[int, int] = Field(default_factory=dict)

    def all_items(self) -> list[ItemInstance]:
        """Every item instance across the three containers."""
        return [*self.inventory, *self.equipment, *self.bank]


class LoginData(BaseModel):
    """Credentials row fetched at login."""

    model_config = {"frozen": True}

    player_id: int
    group_id: int
    password: str
    salt: str = ""
    banned: int = 0


class LinkedPlayer(BaseModel):
    """An account sharing a login ip with someone under review."""

    model_config = {"frozen": True}

    username: str
    group_id: int
