"""Tests for clans and rosters."""

from __future__ import annotations

import pytest

from playerstore.domain.ledgers import ClanMember
from playerstore.infrastructure.repositories import ClanRepository
from playerstore.infrastructure.store import GameStore


@pytest.fixture
def repo(store: GameStore) -> ClanRepository:
    return ClanRepository(store)


class TestClans:
    def test_new_clan_defaults(self, repo: ClanRepository) -> None:
        cid = repo.new_clan("Knights", "KN", "alice")
        [clan] = repo.clans()
        assert clan.clan_id == cid
        assert clan.leader == "alice"
        assert clan.clan_points == 0

    def test_update_clan(self, repo: ClanRepository) -> None:
        repo.new_clan("Knights", "KN", "alice")
        [clan] = repo.clans()
        clan.clan_points = 50
        clan.leader = "bob"
        repo.update_clan(clan)
        [stored] = repo.clans()
        assert (stored.clan_points, stored.leader) == (50, "bob")

    def test_delete_clan_removes_roster(self, repo: ClanRepository) -> None:
        cid = repo.new_clan("Knights", "KN", "alice")
        repo.save_clan_members(cid, [ClanMember(username="alice", rank=1)])
        repo.delete_clan(cid)
        assert repo.clans() == []
        assert repo.clan_members(cid) == []


class TestMembers:
    def test_roster_replaced(self, repo: ClanRepository) -> None:
        cid = repo.new_clan("Knights", "KN", "alice")
        repo.save_clan_members(cid, [ClanMember(username="alice"), ClanMember(username="bob")])
        repo.save_clan_members(cid, [ClanMember(username="carol", kills=3)])
        assert repo.clan_members(cid) == [ClanMember(username="carol", kills=3)]

    def test_update_member_rank(self, repo: ClanRepository) -> None:
        cid = repo.new_clan("Knights", "KN", "alice")
        repo.save_clan_members(cid, [ClanMember(username="bob")])
        repo.update_clan_member(ClanMember(username="bob", rank=2))
        assert repo.clan_members(cid)[0].rank == 2
