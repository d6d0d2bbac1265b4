"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, playerstore.toml only contains
overrides. A fresh deployment needs only ``[database] url``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from playerstore.domain.skills import DEFAULT_SKILLS, normalize_skill_names


class DatabaseConfig(BaseModel):
    """[database] section."""

    model_config = {"frozen": True}

    url: str | None = None  # None -> sqlite file under the data directory
    table_prefix: str = ""
    echo: bool = False  # log SQL statements to stderr
    busy_timeout: float = 30.0
    backup_max_count: int = Field(default=10, ge=1)

    @field_validator("table_prefix")
    @classmethod
    def _check_prefix(cls, value: str) -> str:
        if value and not value.replace("_", "").isalnum():
            msg = f"table_prefix must be alphanumeric/underscore, got {value!r}"
            raise ValueError(msg)
        return value


class FeaturesConfig(BaseModel):
    """[features] section: server-wide feature flags."""

    model_config = {"frozen": True}

    want_equipment_tab: bool = True
    want_bank_presets: bool = True
    spawn_iron_man_npcs: bool = True
    bank_preset_count: int = Field(default=2, ge=0)


class SkillsConfig(BaseModel):
    """[skills] section: ordered skill short names (skill id = position)."""

    model_config = {"frozen": True}

    names: tuple[str, ...] = DEFAULT_SKILLS

    @field_validator("names", mode="before")
    @classmethod
    def _normalize(cls, value: tuple[str, ...] | list[str]) -> tuple[str, ...]:
        return normalize_skill_names(value)

    @property
    def count(self) -> int:
        return len(self.names)
