"""Auxiliary ledger records: auctions, clans, account recovery, drop logs.

Auction records deliberately do not reference an item instance. Once an
item is listed its per-instance identity is dissolved and only the
catalog id and amount persist.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field

RECOVERY_QUESTION_COUNT = 5


class AuctionItem(BaseModel):
    auction_id: int = -1
    catalog_id: int
    amount: int
    amount_left: int
    price: int
    seller: int
    seller_username: str
    buyer_info: str = ""
    time: int = 0
    sold_out: bool = False
    was_cancel: bool = False


class ExpiredAuction(BaseModel):
    """A claimable return of unsold (or cancelled) auction stock."""

    claim_id: int = -1
    catalog_id: int
    amount: int
    time: int = 0
    player_id: int
    explanation: str = ""
    claim_time: int = 0
    claimed: bool = False


class ClanDef(BaseModel):
    clan_id: int = -1
    name: str
    tag: str
    leader: str
    kick_setting: int = 1
    invite_setting: int = 1
    allow_search_join: int = 1
    clan_points: int = 0


class ClanMember(BaseModel):
    username: str
    rank: int = 0
    kills: int = 0
    deaths: int = 0


class RecoveryTable(StrEnum):
    """Which recovery-question ledger a record belongs to."""

    CURRENT = "player_recovery"
    PENDING = "player_change_recovery"


class RecoveryQuestions(BaseModel):
    username: str
    questions: list[str] = Field(
        default_factory=lambda: [""] * RECOVERY_QUESTION_COUNT,
        min_length=RECOVERY_QUESTION_COUNT,
        max_length=RECOVERY_QUESTION_COUNT,
    )
    answers: list[str] = Field(
        default_factory=lambda: [""] * RECOVERY_QUESTION_COUNT,
        min_length=RECOVERY_QUESTION_COUNT,
        max_length=RECOVERY_QUESTION_COUNT,
    )
    date_set: int = 0
    ip_set: str = ""
    # Only populated for RecoveryTable.CURRENT
    previous_pass: str | None = None
    earlier_pass: str | None = None


class ContactDetails(BaseModel):
    player_id: int
    username: str
    full_name: str = ""
    zip_code: str = ""
    country: str = ""
    email: str = ""
    date_modified: int = 0
    ip: str = ""


class ItemDrop(BaseModel):
    """One NPC drop credited to a player, by catalog id."""

    drop_id: int = -1
    catalog_id: int
    player_id: int
    amount: int = Field(default=1, ge=1)
    npc_id: int | None = None
