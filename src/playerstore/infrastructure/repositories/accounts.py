"""Account rows: creation, lookups, credentials, bans and the drop log."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from sqlalchemy import insert, select, update

from playerstore.domain.ledgers import ItemDrop
from playerstore.domain.player import LinkedPlayer, LoginData

if TYPE_CHECKING:
    from playerstore.infrastructure.store import GameStore

logger = logging.getLogger(__name__)

# recently_registered looks back this far
REGISTRATION_COOLDOWN_SECONDS = 60
PERMANENT_BAN = -1


class AccountRepository:
    """Encapsulates SQL for the players table outside of aggregate saves."""

    def __init__(self, store: GameStore) -> None:
        self._store = store

    def create_player(
        self,
        username: str,
        password: str,
        *,
        email: str | None = None,
        salt: str = "",
        ip: str = "0.0.0.0",
        creation_date: int | None = None,
    ) -> int:
        """Insert a player with fresh stats and experience rows; returns its id.

        Raises:
            ConstraintViolationError: If *username* is taken.
        """
        schema = self._store.schema
        created = int(time.time()) if creation_date is None else creation_date
        with self._store.transaction(f"create player {username}") as txn:
            result = txn.conn.execute(
                insert(schema.players).values(
                    username=username,
                    email=email,
                    salt=salt,
                    creation_date=created,
                    creation_ip=ip,
                    login_ip=ip,
                    **{"pass": password},
                )
            )
            player_id = int(result.inserted_primary_key[0])
            txn.conn.execute(insert(schema.curstats).values(player_id=player_id))
            txn.conn.execute(insert(schema.experience).values(player_id=player_id))
        return player_id

    def player_exists(self, player: int | str) -> bool:
        """Whether a player with this id (or username) exists."""
        t = self._store.schema.players
        where = t.c.id == player if isinstance(player, int) else t.c.username == player
        with self._store.connect("player exists") as conn:
            return conn.execute(select(t.c.id).where(where)).first() is not None

    def player_id_from_username(self, username: str) -> int | None:
        t = self._store.schema.players
        with self._store.connect("player id lookup") as conn:
            value = conn.execute(select(t.c.id).where(t.c.username == username)).scalar()
        return int(value) if value is not None else None

    def username_from_player_id(self, player_id: int) -> str | None:
        t = self._store.schema.players
        with self._store.connect("username lookup") as conn:
            value = conn.execute(select(t.c.username).where(t.c.id == player_id)).scalar()
        return str(value) if value is not None else None

    def login_data(self, username: str) -> LoginData | None:
        """Credentials needed to authenticate *username*, or None."""
        t = self._store.schema.players
        stmt = select(t.c.id, t.c.group_id, t.c["pass"], t.c.salt, t.c.banned).where(t.c.username == username)
        with self._store.connect("login data") as conn:
            row = conn.execute(stmt).mappings().first()
        if row is None:
            return None
        return LoginData(
            player_id=row["id"],
            group_id=row["group_id"],
            password=row["pass"],
            salt=row["salt"],
            banned=row["banned"],
        )

    def save_password(self, player_id: int, password: str) -> None:
        t = self._store.schema.players
        with self._store.transaction("save password") as txn:
            txn.conn.execute(update(t).where(t.c.id == player_id).values(**{"pass": password}))

    def save_last_recovery_try_id(self, player_id: int, try_id: int) -> None:
        t = self._store.schema.players
        with self._store.transaction("save recovery try id") as txn:
            txn.conn.execute(update(t).where(t.c.id == player_id).values(last_recovery_try_id=try_id))

    # ------------------------------------------------------------------
    # Moderation
    # ------------------------------------------------------------------

    def ban_player(self, username: str, minutes: int, *, now_ms: int | None = None) -> str:
        """Ban, unban, or time-ban *username*; returns the moderator reply.

        ``-1`` bans permanently, ``0`` lifts any ban, and a positive value
        bans until *minutes* from now. Usernames match case-insensitively.
        """
        t = self._store.schema.players
        match = t.c.username.like(username)
        if minutes == 0:
            stmt = update(t).where(match).values(banned=0)
            reply = f"{username} has been unbanned."
        else:
            if minutes == PERMANENT_BAN:
                until = PERMANENT_BAN
                reply = f"{username} has been banned permanently"
            else:
                start = int(time.time() * 1000) if now_ms is None else now_ms
                until = start + minutes * 60_000
                reply = f"{username} has been banned for {minutes} minutes"
            stmt = update(t).where(match).values(banned=until, offences=t.c.offences + 1)
        with self._store.transaction(f"ban {username}") as txn:
            matched = txn.conn.execute(stmt).rowcount
        if not matched:
            logger.warning("Ban for %s matched no account", username)
        return reply

    def player_login_ip(self, username: str) -> str | None:
        t = self._store.schema.players
        with self._store.connect("login ip") as conn:
            value = conn.execute(select(t.c.login_ip).where(t.c.username == username)).scalar()
        return str(value) if value is not None else None

    def linked_players(self, ip: str) -> list[LinkedPlayer]:
        """Accounts whose last login came from *ip*."""
        t = self._store.schema.players
        stmt = select(t.c.username, t.c.group_id).where(t.c.login_ip.like(ip)).order_by(t.c.id)
        with self._store.connect("linked players") as conn:
            rows = conn.execute(stmt).all()
        return [LinkedPlayer(username=r.username, group_id=r.group_id) for r in rows]

    def recently_registered(self, ip: str, *, now: int | None = None) -> bool:
        """Whether an account was created from *ip* in the last minute."""
        t = self._store.schema.players
        since = (int(time.time()) if now is None else now) - REGISTRATION_COOLDOWN_SECONDS
        stmt = select(t.c.id).where(t.c.creation_ip == ip, t.c.creation_date > since).limit(1)
        with self._store.connect("recently registered") as conn:
            return conn.execute(stmt).first() is not None

    # ------------------------------------------------------------------
    # Drop log
    # ------------------------------------------------------------------

    def add_drop_log(self, drop: ItemDrop) -> None:
        t = self._store.schema.drop_logs
        with self._store.transaction("add drop log") as txn:
            txn.conn.execute(
                insert(t).values(
                    item_id=drop.catalog_id,
                    player_id=drop.player_id,
                    drop_amount=drop.amount,
                    npc_id=drop.npc_id,
                )
            )

    def drop_logs(self, player_id: int) -> list[ItemDrop]:
        t = self._store.schema.drop_logs
        stmt = select(t).where(t.c.player_id == player_id).order_by(t.c.id)
        with self._store.connect("drop logs") as conn:
            rows = conn.execute(stmt).mappings().all()
        return [
            ItemDrop(
                drop_id=r["id"],
                catalog_id=r["item_id"],
                player_id=r["player_id"],
                amount=r["drop_amount"],
                npc_id=r["npc_id"],
            )
            for r in rows
        ]
