"""Skill enumeration and the per-skill column names derived from it.

The stats and experience tables carry one column per skill, so the column
list is generated from the ordered skill names. Skill id is the position
in that list.
"""

from __future__ import annotations

import re

DEFAULT_SKILLS: tuple[str, ...] = (
    "attack",
    "defense",
    "strength",
    "hits",
    "ranged",
    "prayer",
    "magic",
    "cooking",
    "woodcut",
    "fletching",
    "fishing",
    "firemaking",
    "crafting",
    "smithing",
    "mining",
    "herblaw",
    "agility",
    "thieving",
)

_SKILL_NAME = re.compile(r"^[a-z][a-z0-9_]*$")


def normalize_skill_names(names: tuple[str, ...] | list[str]) -> tuple[str, ...]:
    """Lowercase and validate skill short names.

    Raises:
        ValueError: If a name is not a valid column fragment or repeats.
    """
    result = tuple(n.strip().lower() for n in names)
    for name in result:
        if not _SKILL_NAME.match(name):
            msg = f"Invalid skill name: {name!r}"
            raise ValueError(msg)
    if len(set(result)) != len(result):
        msg = f"Duplicate skill names in {list(result)}"
        raise ValueError(msg)
    return result


def cur_column(skill: str) -> str:
    return f"cur_{skill}"


def exp_column(skill: str) -> str:
    return f"exp_{skill}"
