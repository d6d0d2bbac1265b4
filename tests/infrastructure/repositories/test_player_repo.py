"""Tests for aggregate player save/load."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from typing import Any

import pytest
from sqlalchemy import func, select

from playerstore.config.settings import StoreSettings
from playerstore.domain.items import ItemInstance
from playerstore.domain.player import BankPreset, CacheEntry, PlayerAggregate, PlayerData
from playerstore.domain.usernames import username_to_hash
from playerstore.infrastructure.database.errors import ConnectivityError, InvalidStateError
from playerstore.infrastructure.repositories import AccountRepository, PlayerRepository
from playerstore.infrastructure.repositories import players as players_module
from playerstore.infrastructure.store import GameStore
from playerstore.services.check import CheckService
from tests.conftest import items


def _count(store: GameStore, table: Any) -> int:
    with store.connect() as conn:
        return int(conn.execute(select(func.count()).select_from(table)).scalar_one())


@pytest.fixture
def repo(store: GameStore) -> PlayerRepository:
    return PlayerRepository(store)


class TestRoundTrip:
    def test_full_aggregate(self, repo: PlayerRepository, new_player: Callable[..., PlayerAggregate]) -> None:
        player = new_player(
            "alice",
            data=PlayerData(x=120, y=648, fatigue=750, combat_level=12, block_chat=True, male=False),
            inventory=items(10, 11),
            equipment=items(20),
            bank=items(30, 31, 32, amount=100),
            bank_presets=[BankPreset(slot=0, inventory=b"\x01\x02", equipment=b"\x03")],
            friends=[username_to_hash("bob")],
            ignores=[username_to_hash("carol")],
            quests={1: 2, 3: -1},
            cache=[CacheEntry(key="tutorial", type=1, value="done")],
            npc_kills={11: 4},
        )
        player.skills[0] = 40
        player.experience[0] = 37224
        repo.save(player)

        loaded = repo.load(player.player_id)
        assert loaded is not None
        assert loaded.username == "alice"
        assert loaded.data.x == 120
        assert loaded.data.combat_level == 12
        assert loaded.data.block_chat is True
        assert loaded.data.male is False
        assert [i.catalog_id for i in loaded.inventory] == [10, 11]
        assert [i.instance_id for i in loaded.inventory] == [i.instance_id for i in player.inventory]
        assert loaded.equipment[0].wielded is True
        assert [i.amount for i in loaded.bank] == [100, 100, 100]
        assert loaded.bank_presets == player.bank_presets
        assert loaded.friends == player.friends
        assert loaded.ignores == player.ignores
        assert loaded.quests == {1: 2, 3: -1}
        assert loaded.cache == player.cache
        assert loaded.npc_kills == {11: 4}
        assert loaded.skills[0] == 40
        assert loaded.experience[0] == 37224

    def test_load_by_username(self, repo: PlayerRepository, new_player: Callable[..., PlayerAggregate]) -> None:
        player = new_player("bob")
        loaded = repo.load("bob")
        assert loaded is not None
        assert loaded.player_id == player.player_id

    def test_unknown_player_is_none(self, repo: PlayerRepository) -> None:
        assert repo.load(999) is None
        assert repo.load("nobody") is None

    def test_resave_is_stable(
        self, store: GameStore, repo: PlayerRepository, new_player: Callable[..., PlayerAggregate]
    ) -> None:
        player = new_player(inventory=items(1, 2), bank=items(3))
        repo.save(player)
        ids = [i.instance_id for i in player.all_items()]
        repo.save(player)
        assert [i.instance_id for i in player.all_items()] == ids
        assert _count(store, store.schema.item_statuses) == 3


class TestContainers:
    def test_first_save_mints_status_and_slot(
        self, store: GameStore, repo: PlayerRepository, new_player: Callable[..., PlayerAggregate]
    ) -> None:
        player = new_player(inventory=items(10))
        repo.save(player)
        minted = player.inventory[0].instance_id

        st, inv = store.schema.item_statuses, store.schema.inventory
        with store.connect() as conn:
            status = conn.execute(select(st).where(st.c.item_id == minted)).mappings().one()
            rows = conn.execute(select(inv.c.player_id, inv.c.item_id, inv.c.slot)).all()
        assert (status["catalog_id"], status["amount"], status["noted"], status["wielded"]) == (10, 1, 0, 0)
        assert [tuple(r) for r in rows] == [(player.player_id, minted, 0)]

        loaded = repo.load(player.player_id)
        assert loaded is not None
        assert [(i.instance_id, i.catalog_id, i.amount) for i in loaded.inventory] == [(minted, 10, 1)]

    def test_move_inventory_to_bank_clears_wielded(
        self, store: GameStore, repo: PlayerRepository, new_player: Callable[..., PlayerAggregate]
    ) -> None:
        player = new_player(inventory=items(10, wielded=True))
        repo.save(player)
        moved = player.inventory.pop(0)
        player.bank.append(moved)
        repo.save(player)

        inv, bank, st = store.schema.inventory, store.schema.bank, store.schema.item_statuses
        with store.connect() as conn:
            assert conn.execute(select(inv).where(inv.c.player_id == player.player_id)).first() is None
            rows = conn.execute(select(bank.c.player_id, bank.c.item_id, bank.c.slot)).all()
            wielded = conn.execute(select(st.c.wielded).where(st.c.item_id == moved.instance_id)).scalar_one()
        assert [tuple(r) for r in rows] == [(player.player_id, moved.instance_id, 0)]
        assert wielded == 0

    def test_move_bank_to_inventory(
        self, store: GameStore, repo: PlayerRepository, new_player: Callable[..., PlayerAggregate]
    ) -> None:
        player = new_player(bank=items(5, 6))
        repo.save(player)
        moved = player.bank.pop(0)
        player.inventory.append(moved)
        repo.save(player)

        loaded = repo.load(player.player_id)
        assert loaded is not None
        assert loaded.inventory[0].instance_id == moved.instance_id
        assert [i.catalog_id for i in loaded.bank] == [6]
        assert _count(store, store.schema.item_statuses) == 2
        assert moved.instance_id in store.registry

    def test_dropped_item_purged(
        self, store: GameStore, repo: PlayerRepository, new_player: Callable[..., PlayerAggregate]
    ) -> None:
        player = new_player(inventory=items(1, 2))
        repo.save(player)
        dropped = player.inventory.pop()
        repo.save(player)
        assert dropped.instance_id not in store.registry
        assert _count(store, store.schema.item_statuses) == 1

    def test_aliased_ids_rejected(self, repo: PlayerRepository, new_player: Callable[..., PlayerAggregate]) -> None:
        player = new_player(inventory=items(1))
        repo.save(player)
        clone = ItemInstance(catalog_id=1, instance_id=player.inventory[0].instance_id)
        player.bank.append(clone)
        with pytest.raises(InvalidStateError):
            repo.save(player)

    def test_single_container_saves(
        self, repo: PlayerRepository, new_player: Callable[..., PlayerAggregate]
    ) -> None:
        player = new_player()
        repo.save_inventory(player.player_id, items(1, 2))
        repo.save_equipment(player.player_id, items(3))
        repo.save_bank(player.player_id, items(4))
        assert [i.catalog_id for i in repo.load_inventory(player.player_id)] == [1, 2]
        assert [i.catalog_id for i in repo.load_equipment(player.player_id)] == [3]
        assert [i.catalog_id for i in repo.load_bank(player.player_id)] == [4]


class TestAtomicity:
    def test_failed_bank_step_rolls_back(
        self,
        store: GameStore,
        repo: PlayerRepository,
        new_player: Callable[..., PlayerAggregate],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        player = new_player(inventory=items(1), bank=items(2))
        repo.save(player)
        before = repo.load(player.player_id)
        registered = store.registry.snapshot()

        real = players_module.replace_container

        def failing(txn: Any, container: Any, *args: Any, **kwargs: Any) -> None:
            if container == "bank":
                raise ConnectivityError("bank write failed")
            real(txn, container, *args, **kwargs)

        monkeypatch.setattr(players_module, "replace_container", failing)
        new_item = ItemInstance(catalog_id=9)
        player.inventory.append(new_item)
        player.data.x = 77
        with pytest.raises(ConnectivityError):
            repo.save(player)

        assert repo.load(player.player_id) == before
        assert store.registry.snapshot() == registered
        assert not new_item.is_assigned

    def test_wrong_skill_count_writes_nothing(
        self, store: GameStore, repo: PlayerRepository, new_player: Callable[..., PlayerAggregate]
    ) -> None:
        player = new_player(inventory=items(1))
        player.skills.pop(0)
        with pytest.raises(InvalidStateError, match="skills"):
            repo.save(player)
        assert _count(store, store.schema.item_statuses) == 0
        assert not player.inventory[0].is_assigned

    def test_skills_keyed_off_by_one_rejected(
        self, repo: PlayerRepository, new_player: Callable[..., PlayerAggregate]
    ) -> None:
        player = new_player()
        player.skills = {i + 1: 5 for i in range(len(player.skills))}
        with pytest.raises(InvalidStateError, match="keyed by skill index"):
            repo.save(player)

    def test_unknown_player_writes_nothing(self, store: GameStore, repo: PlayerRepository) -> None:
        n = len(store.schema.skills)
        ghost = PlayerAggregate(
            player_id=4040,
            username="ghost",
            inventory=items(1, 2),
            skills=dict.fromkeys(range(n), 1),
            experience=dict.fromkeys(range(n), 0),
        )
        with pytest.raises(InvalidStateError, match="does not exist"):
            repo.save(ghost)
        assert _count(store, store.schema.inventory) == 0
        assert _count(store, store.schema.item_statuses) == 0
        assert not ghost.inventory[0].is_assigned
        assert len(store.registry) == 0


class TestConcurrentSaves:
    def test_players_shuffling_items_in_parallel(
        self, store: GameStore, repo: PlayerRepository, new_player: Callable[..., PlayerAggregate]
    ) -> None:
        players = [new_player(inventory=items(1, 2, 3), bank=items(4, 5)) for _ in range(6)]
        for player in players:
            repo.save(player)
        barrier = threading.Barrier(len(players))
        errors: list[Exception] = []

        def play(player: PlayerAggregate) -> None:
            try:
                barrier.wait()
                for turn in range(10):
                    if turn % 2:
                        player.inventory.append(player.bank.pop(0))
                    else:
                        player.bank.append(player.inventory.pop(0))
                    if turn % 3 == 0:
                        player.inventory.append(ItemInstance(catalog_id=100 + turn))
                    repo.save(player)
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=play, args=(p,)) for p in players]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        ids = [i.instance_id for p in players for i in p.all_items()]
        assert len(ids) == len(set(ids))
        assert all(i > 0 for i in ids)
        report = CheckService(store).check()
        assert report.ok
        assert report.data["issues"] == []
        for player in players:
            loaded = repo.load(player.player_id)
            assert loaded is not None
            assert [(i.instance_id, i.catalog_id) for i in loaded.inventory] == [
                (i.instance_id, i.catalog_id) for i in player.inventory
            ]
            assert [(i.instance_id, i.catalog_id) for i in loaded.bank] == [
                (i.instance_id, i.catalog_id) for i in player.bank
            ]


class TestSocialAndProgress:
    def test_invalid_friend_hash_dropped(
        self, store: GameStore, repo: PlayerRepository, new_player: Callable[..., PlayerAggregate]
    ) -> None:
        player = new_player(friends=[username_to_hash("bob"), -1, 0, 37**12])
        repo.save(player)
        loaded = repo.load(player.player_id)
        assert loaded is not None
        assert loaded.friends == [username_to_hash("bob")]
        with store.connect() as conn:
            name = conn.execute(select(store.schema.friends.c.friend_name)).scalar_one()
        assert name == "Bob"

    def test_npc_kills_upsert(
        self, store: GameStore, repo: PlayerRepository, new_player: Callable[..., PlayerAggregate]
    ) -> None:
        player = new_player(npc_kills={1: 1, 2: 5})
        repo.save(player)
        player.npc_kills = {1: 3, 4: 1}
        repo.save(player)
        loaded = repo.load(player.player_id)
        assert loaded is not None
        assert loaded.npc_kills == {1: 3, 2: 5, 4: 1}
        assert _count(store, store.schema.npc_kills) == 3

    def test_quests_replaced(self, repo: PlayerRepository, new_player: Callable[..., PlayerAggregate]) -> None:
        player = new_player(quests={1: 1, 2: 1})
        repo.save(player)
        player.quests = {2: -1}
        repo.save(player)
        loaded = repo.load(player.player_id)
        assert loaded is not None
        assert loaded.quests == {2: -1}

    def test_achievements_not_written(
        self, store: GameStore, repo: PlayerRepository, new_player: Callable[..., PlayerAggregate]
    ) -> None:
        repo.save(new_player(achievements={1: 1}))
        assert _count(store, store.schema.achievements) == 0

    def test_skill_row_recreated(
        self, store: GameStore, repo: PlayerRepository, new_player: Callable[..., PlayerAggregate]
    ) -> None:
        player = new_player()
        with store.transaction() as txn:
            txn.conn.execute(store.schema.curstats.delete())
        player.skills[2] = 55
        repo.save(player)
        loaded = repo.load(player.player_id)
        assert loaded is not None
        assert loaded.skills[2] == 55


class TestFeatureFlags:
    @pytest.fixture
    def flagged(self, make_settings: Callable[..., StoreSettings]) -> Iterator[Callable[..., GameStore]]:
        opened: list[GameStore] = []

        def _open(**features: Any) -> GameStore:
            s = GameStore(make_settings(features=features))
            opened.append(s)
            return s

        yield _open
        for s in opened:
            s.close()

    def _player(self, store: GameStore, **fields: Any) -> PlayerAggregate:
        pid = AccountRepository(store).create_player("flagged", "hash")
        n = len(store.schema.skills)
        return PlayerAggregate(
            player_id=pid,
            username="flagged",
            skills=dict.fromkeys(range(n), 1),
            experience=dict.fromkeys(range(n), 0),
            **fields,
        )

    def test_presets_disabled(self, flagged: Callable[..., GameStore]) -> None:
        store = flagged(want_bank_presets=False)
        repo = PlayerRepository(store)
        player = self._player(store, bank_presets=[BankPreset(slot=0, inventory=b"x")])
        repo.save(player)
        repo.save_bank_presets(player.player_id, player.bank_presets)
        assert _count(store, store.schema.bank_presets) == 0
        assert repo.load_bank_presets(player.player_id) == []

    def test_equipment_tab_disabled(self, flagged: Callable[..., GameStore]) -> None:
        store = flagged(want_equipment_tab=False)
        repo = PlayerRepository(store)
        player = self._player(store, equipment=items(1))
        repo.save(player)
        assert _count(store, store.schema.equipment) == 1
        loaded = repo.load(player.player_id)
        assert loaded is not None
        assert loaded.equipment == []

    def test_iron_man_disabled(self, flagged: Callable[..., GameStore]) -> None:
        store = flagged(spawn_iron_man_npcs=False)
        repo = PlayerRepository(store)
        player = self._player(store, data=PlayerData(iron_man=2))
        repo.save(player)
        with store.connect() as conn:
            stored = conn.execute(select(store.schema.players.c.iron_man)).scalar_one()
        assert stored == 0
        loaded = repo.load(player.player_id)
        assert loaded is not None
        assert loaded.data.iron_man == 0

    def test_preset_slots_cleared(self, flagged: Callable[..., GameStore]) -> None:
        store = flagged(bank_preset_count=2)
        repo = PlayerRepository(store)
        player = self._player(store, bank_presets=[BankPreset(slot=0), BankPreset(slot=1)])
        repo.save(player)
        player.bank_presets = [BankPreset(slot=1, inventory=b"new")]
        repo.save(player)
        assert repo.load_bank_presets(player.player_id) == [BankPreset(slot=1, inventory=b"new")]
