"""Clan definitions and rosters. Rosters are replaced in bulk on save."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from sqlalchemy import delete, insert, select, update

from playerstore.domain.ledgers import ClanDef, ClanMember

if TYPE_CHECKING:
    from playerstore.infrastructure.store import GameStore


class ClanRepository:
    def __init__(self, store: GameStore) -> None:
        self._store = store

    def clans(self) -> list[ClanDef]:
        t = self._store.schema.clans
        with self._store.connect("clans") as conn:
            rows = conn.execute(select(t).order_by(t.c.id)).mappings().all()
        return [
            ClanDef(
                clan_id=r["id"],
                name=r["name"],
                tag=r["tag"],
                leader=r["leader"],
                kick_setting=r["kick_setting"],
                invite_setting=r["invite_setting"],
                allow_search_join=r["allow_search_join"],
                clan_points=r["clan_points"],
            )
            for r in rows
        ]

    def clan_members(self, clan_id: int) -> list[ClanMember]:
        t = self._store.schema.clan_members
        stmt = select(t).where(t.c.clan_id == clan_id).order_by(t.c.id)
        with self._store.connect("clan members") as conn:
            rows = conn.execute(stmt).mappings().all()
        return [ClanMember(username=r["username"], rank=r["rank"], kills=r["kills"], deaths=r["deaths"]) for r in rows]

    def new_clan(self, name: str, tag: str, leader: str) -> int:
        """Insert a clan and return its generated id."""
        with self._store.transaction("new clan") as txn:
            result = txn.conn.execute(insert(txn.schema.clans).values(name=name, tag=tag, leader=leader))
        return int(result.inserted_primary_key[0])

    def save_clan_members(self, clan_id: int, members: Sequence[ClanMember]) -> None:
        """Replace the roster of *clan_id* with *members*."""
        t = self._store.schema.clan_members
        with self._store.transaction("save clan members") as txn:
            txn.conn.execute(delete(t).where(t.c.clan_id == clan_id))
            if members:
                txn.conn.execute(
                    insert(t),
                    [
                        {"clan_id": clan_id, "username": m.username, "rank": m.rank, "kills": m.kills, "deaths": m.deaths}
                        for m in members
                    ],
                )

    def delete_clan(self, clan_id: int) -> None:
        """Delete the clan and its roster."""
        schema = self._store.schema
        with self._store.transaction("delete clan") as txn:
            txn.conn.execute(delete(schema.clan_members).where(schema.clan_members.c.clan_id == clan_id))
            txn.conn.execute(delete(schema.clans).where(schema.clans.c.id == clan_id))

    def update_clan(self, clan: ClanDef) -> None:
        t = self._store.schema.clans
        with self._store.transaction("update clan") as txn:
            txn.conn.execute(
                update(t)
                .where(t.c.id == clan.clan_id)
                .values(
                    name=clan.name,
                    tag=clan.tag,
                    leader=clan.leader,
                    kick_setting=clan.kick_setting,
                    invite_setting=clan.invite_setting,
                    allow_search_join=clan.allow_search_join,
                    clan_points=clan.clan_points,
                )
            )

    def update_clan_member(self, member: ClanMember) -> None:
        """Update a member's rank, matched by username."""
        t = self._store.schema.clan_members
        with self._store.transaction("update clan member") as txn:
            txn.conn.execute(update(t).where(t.c.username == member.username).values(rank=member.rank))
