"""Repositories: SQL for each aggregate and ledger, one transaction per call."""

from playerstore.infrastructure.repositories.accounts import AccountRepository
from playerstore.infrastructure.repositories.auctions import AuctionRepository
from playerstore.infrastructure.repositories.clans import ClanRepository
from playerstore.infrastructure.repositories.items import ItemRepository
from playerstore.infrastructure.repositories.players import PlayerRepository
from playerstore.infrastructure.repositories.recovery import RecoveryRepository

__all__ = [
    "AccountRepository",
    "AuctionRepository",
    "ClanRepository",
    "ItemRepository",
    "PlayerRepository",
    "RecoveryRepository",
]
