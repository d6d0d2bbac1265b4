"""SQLAlchemy Core table definitions for the playerstore database.

Table names carry a deployment-specific prefix and the stats/experience
tables carry one column per configured skill, so the schema is built by
:func:`build_schema` rather than declared at import time. Build it once
per store and pass the :class:`Schema` to everything that issues SQL.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import (
    BigInteger,
    Column,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
)

from playerstore.domain.ledgers import RECOVERY_QUESTION_COUNT
from playerstore.domain.skills import DEFAULT_SKILLS, cur_column, exp_column


@dataclass(frozen=True)
class Schema:
    """Every table of one prefixed schema, plus the metadata that owns them."""

    prefix: str
    skills: tuple[str, ...]
    metadata: MetaData
    players: Table
    item_statuses: Table
    inventory: Table
    equipment: Table
    bank: Table
    bank_presets: Table
    friends: Table
    ignores: Table
    quests: Table
    achievements: Table
    player_cache: Table
    npc_kills: Table
    curstats: Table
    experience: Table
    auctions: Table
    expired_auctions: Table
    clans: Table
    clan_members: Table
    recovery: Table
    change_recovery: Table
    recovery_attempts: Table
    contact_details: Table
    drop_logs: Table

    @property
    def containers(self) -> tuple[Table, Table, Table]:
        """The three item container tables."""
        return (self.inventory, self.equipment, self.bank)


def _recovery_columns() -> list[Column]:
    cols: list[Column] = [
        Column("player_id", Integer, primary_key=True),
        Column("username", Text, nullable=False),
    ]
    for i in range(1, RECOVERY_QUESTION_COUNT + 1):
        cols.append(Column(f"question{i}", Text, nullable=False, server_default=""))
        cols.append(Column(f"answer{i}", Text, nullable=False, server_default=""))
    cols.append(Column("date_set", BigInteger, nullable=False, server_default="0"))
    cols.append(Column("ip_set", Text, nullable=False, server_default=""))
    return cols


def build_schema(prefix: str = "", skills: tuple[str, ...] = DEFAULT_SKILLS) -> Schema:
    """Build the full table set with *prefix* prepended to every table name."""
    metadata = MetaData()

    def name(base: str) -> str:
        return f"{prefix}{base}"

    players = Table(
        name("players"),
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("username", Text, nullable=False, unique=True),
        Column("group_id", Integer, nullable=False, server_default="10"),
        Column("email", Text),
        Column("pass", Text, nullable=False, server_default=""),
        Column("salt", Text, nullable=False, server_default=""),
        Column("creation_date", BigInteger, nullable=False, server_default="0"),
        Column("creation_ip", Text, nullable=False, server_default="0.0.0.0"),
        Column("login_date", BigInteger, nullable=False, server_default="0"),
        Column("login_ip", Text, nullable=False, server_default="0.0.0.0"),
        Column("banned", BigInteger, nullable=False, server_default="0"),
        Column("offences", Integer, nullable=False, server_default="0"),
        Column("online", Integer, nullable=False, server_default="0"),
        Column("x", Integer, nullable=False, server_default="0"),
        Column("y", Integer, nullable=False, server_default="0"),
        Column("fatigue", Integer, nullable=False, server_default="0"),
        Column("kills", Integer, nullable=False, server_default="0"),
        Column("deaths", Integer, nullable=False, server_default="0"),
        Column("npc_kills", Integer, nullable=False, server_default="0"),
        Column("iron_man", Integer, nullable=False, server_default="0"),
        Column("iron_man_restriction", Integer, nullable=False, server_default="1"),
        Column("hc_iron_man_death", Integer, nullable=False, server_default="0"),
        Column("quest_points", Integer, nullable=False, server_default="0"),
        Column("block_chat", Integer, nullable=False, server_default="0"),
        Column("block_private", Integer, nullable=False, server_default="0"),
        Column("block_trade", Integer, nullable=False, server_default="0"),
        Column("block_duel", Integer, nullable=False, server_default="1"),
        Column("camera_auto", Integer, nullable=False, server_default="0"),
        Column("one_mouse", Integer, nullable=False, server_default="0"),
        Column("sound_off", Integer, nullable=False, server_default="0"),
        Column("hair_colour", Integer, nullable=False, server_default="2"),
        Column("top_colour", Integer, nullable=False, server_default="8"),
        Column("trouser_colour", Integer, nullable=False, server_default="14"),
        Column("skin_colour", Integer, nullable=False, server_default="0"),
        Column("head_sprite", Integer, nullable=False, server_default="1"),
        Column("body_sprite", Integer, nullable=False, server_default="2"),
        Column("male", Integer, nullable=False, server_default="1"),
        Column("combat_style", Integer, nullable=False, server_default="0"),
        Column("muted", BigInteger, nullable=False, server_default="0"),
        Column("bank_size", Integer, nullable=False, server_default="192"),
        Column("combat", Integer, nullable=False, server_default="3"),
        Column("skill_total", Integer, nullable=False, server_default="0"),
        Column("last_recovery_try_id", Integer),
    )

    # sqlite_autoincrement: a rolled-back mint must never hand its id out again.
    item_statuses = Table(
        name("itemstatuses"),
        metadata,
        Column("item_id", Integer, primary_key=True, autoincrement=True),
        Column("catalog_id", Integer, nullable=False),
        Column("amount", Integer, nullable=False, server_default="1"),
        Column("noted", Integer, nullable=False, server_default="0"),
        Column("wielded", Integer, nullable=False, server_default="0"),
        Column("durability", Integer, nullable=False, server_default="100"),
        sqlite_autoincrement=True,
    )

    status_fk = f"{item_statuses.name}.item_id"

    inventory = Table(
        name("invitems"),
        metadata,
        Column("player_id", Integer, nullable=False),
        Column("item_id", Integer, ForeignKey(status_fk), nullable=False),
        Column("slot", Integer, nullable=False),
        UniqueConstraint("player_id", "item_id"),
    )

    equipment = Table(
        name("equipped"),
        metadata,
        Column("player_id", Integer, nullable=False),
        Column("item_id", Integer, ForeignKey(status_fk), nullable=False),
        UniqueConstraint("player_id", "item_id"),
    )

    bank = Table(
        name("bank"),
        metadata,
        Column("player_id", Integer, nullable=False),
        Column("item_id", Integer, ForeignKey(status_fk), nullable=False),
        Column("slot", Integer, nullable=False),
        UniqueConstraint("player_id", "item_id"),
    )

    bank_presets = Table(
        name("bankpresets"),
        metadata,
        Column("player_id", Integer, nullable=False),
        Column("slot", Integer, nullable=False),
        Column("inventory", LargeBinary, nullable=False),
        Column("equipment", LargeBinary, nullable=False),
        UniqueConstraint("player_id", "slot"),
    )

    friends = Table(
        name("friends"),
        metadata,
        Column("player_id", Integer, nullable=False),
        Column("friend_hash", BigInteger, nullable=False),
        Column("friend_name", Text, nullable=False),
    )

    ignores = Table(
        name("ignores"),
        metadata,
        Column("player_id", Integer, nullable=False),
        Column("ignored_hash", BigInteger, nullable=False),
    )

    quests = Table(
        name("quests"),
        metadata,
        Column("player_id", Integer, nullable=False),
        Column("quest_id", Integer, nullable=False),
        Column("stage", Integer, nullable=False),
        UniqueConstraint("player_id", "quest_id"),
    )

    achievements = Table(
        name("achievement_status"),
        metadata,
        Column("player_id", Integer, nullable=False),
        Column("achievement_id", Integer, nullable=False),
        Column("status", Integer, nullable=False),
        UniqueConstraint("player_id", "achievement_id"),
    )

    player_cache = Table(
        name("player_cache"),
        metadata,
        Column("player_id", Integer, nullable=False),
        Column("cache_type", Integer, nullable=False, server_default="0"),
        Column("cache_key", Text, nullable=False),
        Column("cache_value", Text, nullable=False, server_default=""),
    )

    npc_kills = Table(
        name("npckills"),
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("npc_id", Integer, nullable=False),
        Column("player_id", Integer, nullable=False),
        Column("kill_count", Integer, nullable=False, server_default="0"),
        UniqueConstraint("player_id", "npc_id"),
    )

    curstats = Table(
        name("curstats"),
        metadata,
        Column("player_id", Integer, primary_key=True),
        *(Column(cur_column(s), Integer, nullable=False, server_default="1") for s in skills),
    )

    experience = Table(
        name("experience"),
        metadata,
        Column("player_id", Integer, primary_key=True),
        *(Column(exp_column(s), Integer, nullable=False, server_default="0") for s in skills),
    )

    auctions = Table(
        name("auctions"),
        metadata,
        Column("auction_id", Integer, primary_key=True, autoincrement=True),
        Column("catalog_id", Integer, nullable=False),
        Column("amount", Integer, nullable=False),
        Column("amount_left", Integer, nullable=False),
        Column("price", Integer, nullable=False),
        Column("seller", Integer, nullable=False),
        Column("seller_username", Text, nullable=False),
        Column("buyer_info", Text, nullable=False, server_default=""),
        Column("time", BigInteger, nullable=False, server_default="0"),
        Column("sold_out", Integer, nullable=False, server_default="0"),
        Column("was_cancel", Integer, nullable=False, server_default="0"),
    )

    expired_auctions = Table(
        name("expired_auctions"),
        metadata,
        Column("claim_id", Integer, primary_key=True, autoincrement=True),
        Column("catalog_id", Integer, nullable=False),
        Column("amount", Integer, nullable=False),
        Column("time", BigInteger, nullable=False, server_default="0"),
        Column("player_id", Integer, nullable=False),
        Column("explanation", Text, nullable=False, server_default=""),
        Column("claim_time", BigInteger, nullable=False, server_default="0"),
        Column("claimed", Integer, nullable=False, server_default="0"),
    )

    clans = Table(
        name("clan"),
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("name", Text, nullable=False),
        Column("tag", Text, nullable=False),
        Column("leader", Text, nullable=False),
        Column("kick_setting", Integer, nullable=False, server_default="1"),
        Column("invite_setting", Integer, nullable=False, server_default="1"),
        Column("allow_search_join", Integer, nullable=False, server_default="1"),
        Column("clan_points", Integer, nullable=False, server_default="0"),
    )

    clan_members = Table(
        name("clan_players"),
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("clan_id", Integer, ForeignKey(f"{clans.name}.id"), nullable=False),
        Column("username", Text, nullable=False),
        Column("rank", Integer, nullable=False, server_default="0"),
        Column("kills", Integer, nullable=False, server_default="0"),
        Column("deaths", Integer, nullable=False, server_default="0"),
    )

    recovery = Table(
        name("player_recovery"),
        metadata,
        *_recovery_columns(),
        Column("previous_pass", Text),
        Column("earlier_pass", Text),
    )

    change_recovery = Table(
        name("player_change_recovery"),
        metadata,
        *_recovery_columns(),
    )

    recovery_attempts = Table(
        name("recovery_attempts"),
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("player_id", Integer, nullable=False),
        Column("username", Text, nullable=False),
        Column("time", BigInteger, nullable=False),
        Column("ip", Text, nullable=False),
    )

    contact_details = Table(
        name("player_contact_details"),
        metadata,
        Column("player_id", Integer, primary_key=True),
        Column("username", Text, nullable=False),
        Column("full_name", Text, nullable=False, server_default=""),
        Column("zip_code", Text, nullable=False, server_default=""),
        Column("country", Text, nullable=False, server_default=""),
        Column("email", Text, nullable=False, server_default=""),
        Column("date_modified", BigInteger, nullable=False, server_default="0"),
        Column("ip", Text, nullable=False, server_default=""),
    )

    drop_logs = Table(
        name("droplogs"),
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("item_id", Integer, nullable=False),
        Column("player_id", Integer, nullable=False),
        Column("drop_amount", Integer, nullable=False, server_default="1"),
        Column("npc_id", Integer),
    )

    # -----------------------------------------------------------------------
    # Indexes for per-player lookups
    # -----------------------------------------------------------------------

    for table in (inventory, equipment, bank, friends, ignores, player_cache, npc_kills):
        Index(f"ix_{table.name}_player", table.c.player_id)
    for table in (inventory, equipment, bank):
        Index(f"ix_{table.name}_item", table.c.item_id)
    Index(f"ix_{auctions.name}_seller", auctions.c.seller)
    Index(f"ix_{expired_auctions.name}_player", expired_auctions.c.player_id)
    Index(f"ix_{clan_members.name}_clan", clan_members.c.clan_id)
    Index(f"ix_{drop_logs.name}_player", drop_logs.c.player_id)

    return Schema(
        prefix=prefix,
        skills=tuple(skills),
        metadata=metadata,
        players=players,
        item_statuses=item_statuses,
        inventory=inventory,
        equipment=equipment,
        bank=bank,
        bank_presets=bank_presets,
        friends=friends,
        ignores=ignores,
        quests=quests,
        achievements=achievements,
        player_cache=player_cache,
        npc_kills=npc_kills,
        curstats=curstats,
        experience=experience,
        auctions=auctions,
        expired_auctions=expired_auctions,
        clans=clans,
        clan_members=clan_members,
        recovery=recovery,
        change_recovery=change_recovery,
        recovery_attempts=recovery_attempts,
        contact_details=contact_details,
        drop_logs=drop_logs,
    )
