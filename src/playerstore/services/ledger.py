"""LedgerService: read views over the auction and clan ledgers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from playerstore.infrastructure.database.errors import PersistenceError
from playerstore.infrastructure.repositories import AuctionRepository, ClanRepository
from playerstore.services.base import BaseService
from playerstore.services.result import ServiceResult
from playerstore.services.telemetry import traced

if TYPE_CHECKING:
    from playerstore.infrastructure.store import GameStore


class LedgerService(BaseService):
    def __init__(self, store: GameStore) -> None:
        super().__init__(store)
        self._auctions = AuctionRepository(store)
        self._clans = ClanRepository(store)

    @traced
    def list_auctions(self, *, seller: int | None = None) -> ServiceResult:
        """Open auction listings, optionally for one seller."""
        op = "list_auctions"
        try:
            items = self._auctions.auction_items()
        except PersistenceError as exc:
            return self._failure(op, exc)
        if seller is not None:
            items = [a for a in items if a.seller == seller]
        return ServiceResult(
            ok=True,
            op=op,
            data={"items": [a.model_dump() for a in items], "count": len(items)},
        )

    @traced
    def collectible(self, player_id: int) -> ServiceResult:
        op = "collectible_items"
        try:
            claims = self._auctions.collectible_items(player_id)
        except PersistenceError as exc:
            return self._failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"items": [c.model_dump() for c in claims], "count": len(claims)},
        )

    @traced
    def list_clans(self, *, members: bool = False) -> ServiceResult:
        op = "list_clans"
        try:
            clans = self._clans.clans()
            rows = []
            for clan in clans:
                row = clan.model_dump()
                if members:
                    row["members"] = [m.model_dump() for m in self._clans.clan_members(clan.clan_id)]
                rows.append(row)
        except PersistenceError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"items": rows, "count": len(rows)})
