"""Aggregate player save/load.

A save replaces the player's entire persisted state inside one
transaction, in a fixed order:

    basic info -> inventory -> equipment -> bank -> bank presets ->
    friends -> ignores -> quests -> achievements -> cache -> npc kills ->
    skills -> experience

Any failure rolls the whole save back and surfaces as a
:class:`~playerstore.infrastructure.database.errors.PersistenceError`.
Loads are read-only and return ``None`` for an unknown player.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from sqlalchemy import bindparam, delete, insert, select, update

from playerstore.domain.items import Container, ItemInstance
from playerstore.domain.player import BankPreset, CacheEntry, PlayerAggregate, PlayerData
from playerstore.domain.skills import cur_column, exp_column
from playerstore.domain.usernames import hash_to_username, is_valid_hash
from playerstore.infrastructure.database.containers import (
    check_unique_ids,
    load_container,
    replace_container,
)
from playerstore.infrastructure.database.errors import InvalidStateError

if TYPE_CHECKING:
    from sqlalchemy import Connection, Table

    from playerstore.infrastructure.database.schema import Schema
    from playerstore.infrastructure.store import GameStore, StoreTransaction

logger = logging.getLogger(__name__)

IRON_MAN_COLUMNS = ("iron_man", "iron_man_restriction", "hc_iron_man_death")

# PlayerData field -> players column, for fields whose names differ.
_RENAMED = {
    "combat_level": "combat",
    "total_level": "skill_total",
    "mute_expires": "muted",
}
# Columns written by a save. login_date/login_ip belong to the login flow.
_SAVED_FIELDS = (
    "combat_level",
    "total_level",
    "x",
    "y",
    "fatigue",
    "kills",
    "deaths",
    "npc_kills",
    "iron_man",
    "iron_man_restriction",
    "hc_iron_man_death",
    "quest_points",
    "hair_colour",
    "top_colour",
    "trouser_colour",
    "skin_colour",
    "head_sprite",
    "body_sprite",
    "male",
    "combat_style",
    "mute_expires",
    "bank_size",
    "group_id",
    "block_chat",
    "block_private",
    "block_trade",
    "block_duel",
    "camera_auto",
    "one_mouse",
    "sound_off",
)


def _column(field_name: str) -> str:
    return _RENAMED.get(field_name, field_name)


def _db_value(value: Any) -> Any:
    return int(value) if isinstance(value, bool) else value


class PlayerRepository:
    """Whole-aggregate and per-collection persistence for players."""

    def __init__(self, store: GameStore) -> None:
        self._store = store

    @property
    def _schema(self) -> Schema:
        return self._store.schema

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    def save(self, player: PlayerAggregate) -> None:
        """Persist *player* atomically; all or nothing.

        Raises:
            InvalidStateError: If the aggregate is malformed (aliased item
                ids, wrong number of skills). Nothing is written.
            ConnectivityError: If any statement fails. Everything written
                by this save is rolled back.
        """
        self._validate(player)
        pid = player.player_id
        with self._store.transaction(f"save player {pid}") as txn:
            self._save_basic_info(txn, player)
            self._save_containers(txn, player)
            if txn.features.want_bank_presets:
                self._save_bank_presets(txn, pid, player.bank_presets)
            self._save_friends(txn, pid, player.friends)
            self._save_ignores(txn, pid, player.ignores)
            self._save_quests(txn, pid, player.quests)
            self._save_achievements(txn, pid, player.achievements)
            self._save_cache(txn, pid, player.cache)
            self._save_npc_kills(txn, pid, player.npc_kills)
            self._save_skills(txn, pid, player.skills)
            self._save_experience(txn, pid, player.experience)
        logger.debug(
            "Saved player %d (%d inventory, %d equipment, %d bank)",
            pid,
            len(player.inventory),
            len(player.equipment),
            len(player.bank),
        )

    def save_inventory(self, player_id: int, items: Sequence[ItemInstance]) -> None:
        self._save_container(Container.INVENTORY, player_id, items)

    def save_equipment(self, player_id: int, items: Sequence[ItemInstance]) -> None:
        self._save_container(Container.EQUIPMENT, player_id, items)

    def save_bank(self, player_id: int, items: Sequence[ItemInstance]) -> None:
        self._save_container(Container.BANK, player_id, items)

    def save_bank_presets(self, player_id: int, presets: Sequence[BankPreset]) -> None:
        """Replace the bank presets. A no-op while presets are disabled."""
        if not self._store.features.want_bank_presets:
            return
        with self._store.transaction(f"save bank presets {player_id}") as txn:
            self._save_bank_presets(txn, player_id, presets)

    def _save_container(self, container: Container, player_id: int, items: Sequence[ItemInstance]) -> None:
        check_unique_ids(items)
        with (
            self._store.transaction(f"save {container} {player_id}") as txn,
            txn.registry.locked(),
        ):
            replace_container(txn, container, player_id, items)

    def _validate(self, player: PlayerAggregate) -> None:
        check_unique_ids(player.all_items())
        expected = set(range(len(self._store.schema.skills)))
        for label, values in (("skills", player.skills), ("experience", player.experience)):
            if set(values) != expected:
                msg = (
                    f"Player {player.player_id} {label} must be keyed by skill index "
                    f"0..{len(expected) - 1}, got {sorted(values)}"
                )
                raise InvalidStateError(msg)

    def _save_basic_info(self, txn: StoreTransaction, player: PlayerAggregate) -> None:
        data = player.data
        values: dict[str, Any] = {}
        for name in _SAVED_FIELDS:
            if name in IRON_MAN_COLUMNS and not txn.features.spawn_iron_man_npcs:
                continue
            values[_column(name)] = _db_value(getattr(data, name))
        t = txn.schema.players
        result = txn.conn.execute(update(t).where(t.c.id == player.player_id).values(**values))
        if not result.rowcount:
            msg = f"Player {player.player_id} does not exist"
            raise InvalidStateError(msg)

    def _save_containers(self, txn: StoreTransaction, player: PlayerAggregate) -> None:
        keep = {i.instance_id for i in player.all_items() if i.is_assigned}
        pid = player.player_id
        with txn.registry.locked():
            replace_container(txn, Container.INVENTORY, pid, player.inventory, keep=keep)
            replace_container(txn, Container.EQUIPMENT, pid, player.equipment, keep=keep)
            replace_container(txn, Container.BANK, pid, player.bank, keep=keep)

    def _save_bank_presets(self, txn: StoreTransaction, player_id: int, presets: Sequence[BankPreset]) -> None:
        t = txn.schema.bank_presets
        slots = list(range(txn.features.bank_preset_count))
        slots.extend(p.slot for p in presets if p.slot not in slots)
        txn.conn.execute(delete(t).where(t.c.player_id == player_id, t.c.slot.in_(slots)))
        if presets:
            txn.conn.execute(
                insert(t),
                [
                    {"player_id": player_id, "slot": p.slot, "inventory": p.inventory, "equipment": p.equipment}
                    for p in presets
                ],
            )

    def _save_friends(self, txn: StoreTransaction, player_id: int, friends: Sequence[int]) -> None:
        t = txn.schema.friends
        txn.conn.execute(delete(t).where(t.c.player_id == player_id))
        rows = [
            {"player_id": player_id, "friend_hash": h, "friend_name": hash_to_username(h)}
            for h in friends
            if is_valid_hash(h)
        ]
        if rows:
            txn.conn.execute(insert(t), rows)

    def _save_ignores(self, txn: StoreTransaction, player_id: int, ignores: Sequence[int]) -> None:
        t = txn.schema.ignores
        txn.conn.execute(delete(t).where(t.c.player_id == player_id))
        if ignores:
            txn.conn.execute(insert(t), [{"player_id": player_id, "ignored_hash": h} for h in ignores])

    def _save_quests(self, txn: StoreTransaction, player_id: int, quests: dict[int, int]) -> None:
        t = txn.schema.quests
        txn.conn.execute(delete(t).where(t.c.player_id == player_id))
        if quests:
            txn.conn.execute(
                insert(t),
                [{"player_id": player_id, "quest_id": q, "stage": s} for q, s in sorted(quests.items())],
            )

    def _save_achievements(self, txn: StoreTransaction, player_id: int, achievements: dict[int, int]) -> None:
        """Achievement progress is not written by a player save."""

    def _save_cache(self, txn: StoreTransaction, player_id: int, cache: Sequence[CacheEntry]) -> None:
        t = txn.schema.player_cache
        txn.conn.execute(delete(t).where(t.c.player_id == player_id))
        if cache:
            txn.conn.execute(
                insert(t),
                [
                    {"player_id": player_id, "cache_type": c.type, "cache_key": c.key, "cache_value": c.value}
                    for c in cache
                ],
            )

    def _save_npc_kills(self, txn: StoreTransaction, player_id: int, kills: dict[int, int]) -> None:
        t = txn.schema.npc_kills
        existing = {
            int(row.npc_id): int(row.id)
            for row in txn.conn.execute(select(t.c.id, t.c.npc_id).where(t.c.player_id == player_id))
        }
        updates = [
            {"b_id": existing[npc], "b_kill_count": count} for npc, count in kills.items() if npc in existing
        ]
        inserts = [
            {"player_id": player_id, "npc_id": npc, "kill_count": count}
            for npc, count in kills.items()
            if npc not in existing
        ]
        if updates:
            txn.conn.execute(
                update(t).where(t.c.id == bindparam("b_id")).values(kill_count=bindparam("b_kill_count")),
                updates,
            )
        if inserts:
            txn.conn.execute(insert(t), inserts)

    def _save_skills(self, txn: StoreTransaction, player_id: int, levels: dict[int, int]) -> None:
        self._save_skill_row(txn, txn.schema.curstats, cur_column, player_id, levels)

    def _save_experience(self, txn: StoreTransaction, player_id: int, experience: dict[int, int]) -> None:
        self._save_skill_row(txn, txn.schema.experience, exp_column, player_id, experience)

    def _save_skill_row(
        self,
        txn: StoreTransaction,
        table: Table,
        column: Any,
        player_id: int,
        values: dict[int, int],
    ) -> None:
        skills = txn.schema.skills
        if set(values) != set(range(len(skills))):
            msg = f"Skill values for player {player_id} must be keyed 0..{len(skills) - 1}, got {sorted(values)}"
            raise InvalidStateError(msg)
        row = {column(name): values[index] for index, name in enumerate(skills)}
        result = txn.conn.execute(update(table).where(table.c.player_id == player_id).values(**row))
        if not result.rowcount:
            txn.conn.execute(insert(table).values(player_id=player_id, **row))

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    def load(self, player: int | str) -> PlayerAggregate | None:
        """Load a full aggregate by player id or username, or None."""
        with self._store.connect(f"load player {player}") as conn:
            t = self._schema.players
            where = t.c.id == player if isinstance(player, int) else t.c.username == player
            row = conn.execute(select(t).where(where)).mappings().first()
            if row is None:
                return None
            pid = int(row["id"])
            features = self._store.features
            aggregate = PlayerAggregate(
                player_id=pid,
                username=row["username"],
                data=self._row_to_data(row),
                inventory=load_container(conn, self._schema, Container.INVENTORY, pid),
                equipment=(
                    load_container(conn, self._schema, Container.EQUIPMENT, pid)
                    if features.want_equipment_tab
                    else []
                ),
                bank=load_container(conn, self._schema, Container.BANK, pid),
                bank_presets=self._load_bank_presets(conn, pid) if features.want_bank_presets else [],
                friends=self._load_hashes(conn, self._schema.friends, "friend_hash", pid),
                ignores=self._load_hashes(conn, self._schema.ignores, "ignored_hash", pid),
                quests=self._load_pairs(conn, self._schema.quests, "quest_id", "stage", pid),
                achievements=self._load_pairs(conn, self._schema.achievements, "achievement_id", "status", pid),
                cache=self._load_cache(conn, pid),
                npc_kills=self._load_pairs(conn, self._schema.npc_kills, "npc_id", "kill_count", pid),
                skills=self._load_skill_row(conn, self._schema.curstats, cur_column, pid),
                experience=self._load_skill_row(conn, self._schema.experience, exp_column, pid),
            )
        return aggregate

    def load_inventory(self, player_id: int) -> list[ItemInstance]:
        with self._store.connect("load inventory") as conn:
            return load_container(conn, self._schema, Container.INVENTORY, player_id)

    def load_equipment(self, player_id: int) -> list[ItemInstance]:
        """Worn items; always empty while the equipment tab is disabled."""
        if not self._store.features.want_equipment_tab:
            return []
        with self._store.connect("load equipment") as conn:
            return load_container(conn, self._schema, Container.EQUIPMENT, player_id)

    def load_bank(self, player_id: int) -> list[ItemInstance]:
        with self._store.connect("load bank") as conn:
            return load_container(conn, self._schema, Container.BANK, player_id)

    def load_bank_presets(self, player_id: int) -> list[BankPreset]:
        if not self._store.features.want_bank_presets:
            return []
        with self._store.connect("load bank presets") as conn:
            return self._load_bank_presets(conn, player_id)

    def _row_to_data(self, row: Any) -> PlayerData:
        values: dict[str, Any] = {}
        for name, info in PlayerData.model_fields.items():
            if name == "player_id":
                values[name] = row["id"]
                continue
            if name in IRON_MAN_COLUMNS and not self._store.features.spawn_iron_man_npcs:
                continue
            raw = row[_column(name)]
            values[name] = bool(raw) if info.annotation is bool else raw
        return PlayerData(**values)

    def _load_bank_presets(self, conn: Connection, player_id: int) -> list[BankPreset]:
        t = self._schema.bank_presets
        rows = conn.execute(select(t).where(t.c.player_id == player_id).order_by(t.c.slot))
        return [
            BankPreset(slot=r.slot, inventory=bytes(r.inventory), equipment=bytes(r.equipment)) for r in rows
        ]

    def _load_hashes(self, conn: Connection, table: Table, column: str, player_id: int) -> list[int]:
        rows = conn.execute(select(table.c[column]).where(table.c.player_id == player_id))
        return [int(r[0]) for r in rows]

    def _load_pairs(self, conn: Connection, table: Table, key: str, value: str, player_id: int) -> dict[int, int]:
        rows = conn.execute(select(table.c[key], table.c[value]).where(table.c.player_id == player_id))
        return {int(k): int(v) for k, v in rows}

    def _load_cache(self, conn: Connection, player_id: int) -> list[CacheEntry]:
        t = self._schema.player_cache
        rows = conn.execute(select(t).where(t.c.player_id == player_id))
        return [CacheEntry(key=r.cache_key, type=r.cache_type, value=r.cache_value) for r in rows]

    def _load_skill_row(self, conn: Connection, table: Table, column: Any, player_id: int) -> dict[int, int]:
        row = conn.execute(select(table).where(table.c.player_id == player_id)).mappings().first()
        if row is None:
            return {}
        return {i: int(row[column(name)]) for i, name in enumerate(self._schema.skills)}
