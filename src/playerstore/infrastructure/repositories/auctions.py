"""Auction house ledger and expired-auction claims.

Listings store a flattened catalog id and amount; the item instance that
was listed is purged by the caller before the listing is written.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from sqlalchemy import bindparam, func, insert, select, update

from playerstore.domain.ledgers import AuctionItem, ExpiredAuction

if TYPE_CHECKING:
    from playerstore.infrastructure.store import GameStore


def _to_auction(row: Any) -> AuctionItem:
    return AuctionItem(
        auction_id=row["auction_id"],
        catalog_id=row["catalog_id"],
        amount=row["amount"],
        amount_left=row["amount_left"],
        price=row["price"],
        seller=row["seller"],
        seller_username=row["seller_username"],
        buyer_info=row["buyer_info"],
        time=row["time"],
        sold_out=bool(row["sold_out"]),
        was_cancel=bool(row["was_cancel"]),
    )


class AuctionRepository:
    def __init__(self, store: GameStore) -> None:
        self._store = store

    def new_auction(self, auction: AuctionItem) -> int:
        """Insert a listing; returns the generated auction id."""
        t = self._store.schema.auctions
        with self._store.transaction("new auction") as txn:
            result = txn.conn.execute(
                insert(t).values(
                    catalog_id=auction.catalog_id,
                    amount=auction.amount,
                    amount_left=auction.amount_left,
                    price=auction.price,
                    seller=auction.seller,
                    seller_username=auction.seller_username,
                    buyer_info=auction.buyer_info,
                    time=auction.time,
                )
            )
        return int(result.inserted_primary_key[0])

    def cancel_auction(self, auction_id: int) -> None:
        t = self._store.schema.auctions
        with self._store.transaction("cancel auction") as txn:
            txn.conn.execute(
                update(t).where(t.c.auction_id == auction_id).values(sold_out=1, was_cancel=1)
            )

    def auction_count(self) -> int:
        """Number of open listings."""
        t = self._store.schema.auctions
        with self._store.connect("auction count") as conn:
            return int(conn.execute(select(func.count()).select_from(t).where(t.c.sold_out == 0)).scalar_one())

    def player_auction_count(self, player_id: int) -> int:
        t = self._store.schema.auctions
        stmt = select(func.count()).select_from(t).where(t.c.seller == player_id, t.c.sold_out == 0)
        with self._store.connect("player auction count") as conn:
            return int(conn.execute(stmt).scalar_one())

    def auction_item(self, auction_id: int) -> AuctionItem | None:
        t = self._store.schema.auctions
        with self._store.connect("auction item") as conn:
            row = conn.execute(select(t).where(t.c.auction_id == auction_id)).mappings().first()
        return _to_auction(row) if row is not None else None

    def auction_items(self) -> list[AuctionItem]:
        """Every open listing, oldest first."""
        t = self._store.schema.auctions
        stmt = select(t).where(t.c.sold_out == 0).order_by(t.c.auction_id)
        with self._store.connect("auction items") as conn:
            return [_to_auction(row) for row in conn.execute(stmt).mappings()]

    def set_sold_out(self, auction: AuctionItem) -> None:
        t = self._store.schema.auctions
        with self._store.transaction("auction sold out") as txn:
            txn.conn.execute(
                update(t)
                .where(t.c.auction_id == auction.auction_id)
                .values(amount_left=auction.amount_left, sold_out=int(auction.sold_out), buyer_info=auction.buyer_info)
            )

    def update_auction(self, auction: AuctionItem) -> None:
        t = self._store.schema.auctions
        with self._store.transaction("update auction") as txn:
            txn.conn.execute(
                update(t)
                .where(t.c.auction_id == auction.auction_id)
                .values(amount_left=auction.amount_left, price=auction.price, buyer_info=auction.buyer_info)
            )

    # ------------------------------------------------------------------
    # Expired auctions
    # ------------------------------------------------------------------

    def add_expired_auctions(self, expired: Sequence[ExpiredAuction]) -> None:
        if not expired:
            return
        t = self._store.schema.expired_auctions
        rows = [
            {
                "catalog_id": e.catalog_id,
                "amount": e.amount,
                "time": e.time,
                "player_id": e.player_id,
                "explanation": e.explanation,
            }
            for e in expired
        ]
        with self._store.transaction("expired auctions") as txn:
            txn.conn.execute(insert(t), rows)

    def collectible_items(self, player_id: int) -> list[ExpiredAuction]:
        """Unclaimed returns waiting for *player_id*."""
        t = self._store.schema.expired_auctions
        stmt = select(t).where(t.c.player_id == player_id, t.c.claimed == 0).order_by(t.c.claim_id)
        with self._store.connect("collectible items") as conn:
            rows = conn.execute(stmt).mappings().all()
        return [
            ExpiredAuction(
                claim_id=r["claim_id"],
                catalog_id=r["catalog_id"],
                amount=r["amount"],
                time=r["time"],
                player_id=r["player_id"],
                explanation=r["explanation"],
                claim_time=r["claim_time"],
                claimed=bool(r["claimed"]),
            )
            for r in rows
        ]

    def collect_items(self, claims: Sequence[ExpiredAuction]) -> None:
        """Mark *claims* as collected at their ``claim_time``."""
        if not claims:
            return
        t = self._store.schema.expired_auctions
        stmt = (
            update(t)
            .where(t.c.claim_id == bindparam("b_claim_id"))
            .values(claimed=1, claim_time=bindparam("b_claim_time"))
        )
        with self._store.transaction("collect items") as txn:
            txn.conn.execute(stmt, [{"b_claim_id": c.claim_id, "b_claim_time": c.claim_time} for c in claims])
