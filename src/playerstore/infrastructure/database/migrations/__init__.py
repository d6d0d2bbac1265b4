"""Alembic migration infrastructure for playerstore.

Programmatic Alembic configuration, no alembic.ini needed. The table
prefix and skill list are carried as main options so migration scripts
build the same prefixed schema as the running store.
"""

from __future__ import annotations

from pathlib import Path

from alembic.config import Config

from playerstore.domain.skills import DEFAULT_SKILLS
from playerstore.infrastructure.database.schema import Schema, build_schema

PREFIX_OPTION = "playerstore.table_prefix"
SKILLS_OPTION = "playerstore.skills"


def build_config(
    db_url: str,
    *,
    table_prefix: str = "",
    skills: tuple[str, ...] = DEFAULT_SKILLS,
) -> Config:
    """Build an Alembic Config pointing at our migration scripts."""
    cfg = Config()
    cfg.set_main_option("script_location", str(Path(__file__).parent))
    # ConfigParser interpolation: a literal % in a URL must be doubled.
    cfg.set_main_option("sqlalchemy.url", db_url.replace("%", "%%"))
    cfg.set_main_option(PREFIX_OPTION, table_prefix)
    cfg.set_main_option(SKILLS_OPTION, ",".join(skills))
    return cfg


def schema_from_config(cfg: Config) -> Schema:
    """Rebuild the prefixed schema described by *cfg*'s main options."""
    prefix = cfg.get_main_option(PREFIX_OPTION) or ""
    raw = cfg.get_main_option(SKILLS_OPTION) or ""
    skills = tuple(s for s in raw.split(",") if s) or DEFAULT_SKILLS
    return build_schema(prefix, skills)


def version_table(cfg: Config) -> str:
    return f"{cfg.get_main_option(PREFIX_OPTION) or ''}alembic_version"


def stamp_head(cfg: Config) -> None:
    """Stamp a database as at the current head revision.

    Called by ``playerstore init`` so freshly created databases start at
    the correct Alembic version without running migrations.
    """
    from alembic import command

    command.stamp(cfg, "head")
