"""PlayerService: aggregate save/load and account operations as ServiceResults."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from playerstore.infrastructure.database.errors import PersistenceError
from playerstore.infrastructure.repositories import AccountRepository, PlayerRepository
from playerstore.services.base import BaseService
from playerstore.services.result import NOT_FOUND, ServiceResult
from playerstore.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from playerstore.domain.player import PlayerAggregate
    from playerstore.infrastructure.store import GameStore


def _parse_player_ref(player: int | str) -> int | str:
    """CLI arguments arrive as text; all-digit references are player ids."""
    if isinstance(player, str) and player.isdigit():
        return int(player)
    return player


class PlayerService(BaseService):
    """Save, load, and look up players."""

    def __init__(self, store: GameStore) -> None:
        super().__init__(store)
        self._players = PlayerRepository(store)
        self._accounts = AccountRepository(store)

    @traced
    def save(self, player: PlayerAggregate) -> ServiceResult:
        """Persist the whole aggregate in one transaction."""
        op = "save_player"
        unassigned = sum(1 for item in player.all_items() if not item.is_assigned)
        try:
            with trace_span("save") as span:
                self._players.save(player)
                if span is not None:
                    span.annotate("minted", unassigned)
        except PersistenceError as exc:
            return self._failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "player_id": player.player_id,
                "minted": unassigned,
                "inventory": len(player.inventory),
                "equipment": len(player.equipment),
                "bank": len(player.bank),
            },
        )

    @traced
    def load(self, player: int | str) -> ServiceResult:
        """Load the full aggregate, serialized under ``data["player"]``."""
        op = "load_player"
        ref = _parse_player_ref(player)
        try:
            aggregate = self._players.load(ref)
        except PersistenceError as exc:
            return self._failure(op, exc)
        if aggregate is None:
            return ServiceResult.failure(op, NOT_FOUND, f"No player {ref!r}")
        return ServiceResult(ok=True, op=op, data={"player": aggregate.model_dump(mode="json")})

    @traced
    def show(self, player: int | str) -> ServiceResult:
        """Summary of one player: profile, container sizes, skills by name."""
        op = "show_player"
        ref = _parse_player_ref(player)
        try:
            aggregate = self._players.load(ref)
        except PersistenceError as exc:
            return self._failure(op, exc)
        if aggregate is None:
            return ServiceResult.failure(op, NOT_FOUND, f"No player {ref!r}")

        skills = self._store.schema.skills
        data: dict[str, Any] = {
            "player_id": aggregate.player_id,
            "username": aggregate.username,
            "group_id": aggregate.data.group_id,
            "combat_level": aggregate.data.combat_level,
            "total_level": aggregate.data.total_level,
            "location": [aggregate.data.x, aggregate.data.y],
            "inventory": len(aggregate.inventory),
            "equipment": len(aggregate.equipment),
            "bank": len(aggregate.bank),
            "friends": len(aggregate.friends),
            "quests": len(aggregate.quests),
            "skills": {skills[i]: level for i, level in sorted(aggregate.skills.items()) if i < len(skills)},
        }
        return ServiceResult(ok=True, op=op, data=data)

    @traced
    def exists(self, player: int | str) -> ServiceResult:
        op = "player_exists"
        ref = _parse_player_ref(player)
        try:
            found = self._accounts.player_exists(ref)
        except PersistenceError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"player": ref, "exists": found})

    @traced
    def create(self, username: str, password: str, *, email: str | None = None) -> ServiceResult:
        op = "create_player"
        try:
            player_id = self._accounts.create_player(username, password, email=email)
        except PersistenceError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"player_id": player_id, "username": username})

    @traced
    def ban(self, username: str, minutes: int) -> ServiceResult:
        """Ban (``-1`` permanent, ``N`` minutes) or unban (``0``) a player."""
        op = "ban_player"
        try:
            if not self._accounts.player_exists(username):
                return ServiceResult.failure(op, NOT_FOUND, f"No player {username!r}")
            message = self._accounts.ban_player(username, minutes)
        except PersistenceError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"username": username, "minutes": minutes, "message": message})

    @traced
    def linked(self, username: str) -> ServiceResult:
        """Accounts that last logged in from the same ip as *username*."""
        op = "linked_players"
        try:
            ip = self._accounts.player_login_ip(username)
            if ip is None:
                return ServiceResult.failure(op, NOT_FOUND, f"No player {username!r}")
            linked = self._accounts.linked_players(ip)
        except PersistenceError as exc:
            return self._failure(op, exc)
        items = [p.model_dump() for p in linked]
        return ServiceResult(ok=True, op=op, data={"username": username, "ip": ip, "items": items, "count": len(items)})
