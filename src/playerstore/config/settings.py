"""StoreSettings: one frozen object for CLI flags, environment and TOML.

Later sources lose to earlier ones:

1. keyword arguments (CLI flags, or whatever an embedding server passes)
2. ``PLAYERSTORE_*`` environment variables, ``__`` between section and key
3. the discovered ``playerstore.toml``
4. section model defaults
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from playerstore.config.discovery import find_config, read_config
from playerstore.config.models import DatabaseConfig, FeaturesConfig, SkillsConfig

DATA_DIRNAME = ".playerstore"
DB_FILENAME = "playerstore.db"

# pydantic-settings builds sources from the class, so the file chosen by
# from_cli travels to settings_customise_sources through this slot.
_pending = threading.local()


class _TomlSource(PydanticBaseSettingsSource):
    def __init__(self, settings_cls: type[BaseSettings], path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data = read_config(path) if path is not None and path.is_file() else {}

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return dict(self._data)


class StoreSettings(BaseSettings):
    """Settings for one store deployment.

    Attributes:
        root: Deployment directory; the config file's parent, else the CWD.
        config_path: The TOML file in effect, if any.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        env_prefix="PLAYERSTORE_",
        env_nested_delimiter="__",
    )

    root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    features: FeaturesConfig = Field(default_factory=FeaturesConfig)
    skills: SkillsConfig = Field(default_factory=SkillsConfig)

    @property
    def data_dir(self) -> Path:
        """``{root}/.playerstore``: default database and backups."""
        return self.root / DATA_DIRNAME

    @property
    def database_url(self) -> str:
        return self.database.url or f"sqlite:///{self.data_dir / DB_FILENAME}"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        toml = _TomlSource(settings_cls, getattr(_pending, "path", None))
        return init_settings, env_settings, toml

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        root: Path | None = None,
        **overrides: Any,
    ) -> StoreSettings:
        """Build settings the way the CLI does.

        An explicit *config_path* that does not exist means no TOML at all;
        without one, ``playerstore.toml`` is searched for from *root*.
        """
        if config_path:
            candidate = Path(config_path)
            toml_path = candidate if candidate.is_file() else None
        else:
            toml_path = find_config(root)
        if root is None:
            root = toml_path.parent if toml_path is not None else Path.cwd()

        _pending.path = toml_path
        try:
            return cls(root=root, config_path=toml_path, **overrides)
        finally:
            _pending.path = None
