"""Shared pytest fixtures for playerstore tests."""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from playerstore.config.settings import StoreSettings
from playerstore.domain.items import ItemInstance
from playerstore.domain.player import PlayerAggregate
from playerstore.domain.skills import DEFAULT_SKILLS
from playerstore.infrastructure.database.engine import create_db_engine, init_database
from playerstore.infrastructure.database.schema import Schema, build_schema
from playerstore.infrastructure.repositories import AccountRepository
from playerstore.infrastructure.store import GameStore
from playerstore.services.telemetry import disable_telemetry


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host PLAYERSTORE_* variables out of every test."""
    monkeypatch.delenv("PLAYERSTORE_CONFIG", raising=False)
    monkeypatch.delenv("PLAYERSTORE_ROOT", raising=False)


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """The CLI reconfigures the root logger; put it back after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    disable_telemetry()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def schema() -> Schema:
    return build_schema()


@pytest.fixture
def db_engine(tmp_path: Path, schema: Schema) -> Generator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_database(engine, schema)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def make_settings(tmp_path: Path) -> Callable[..., StoreSettings]:
    """Factory for settings rooted at tmp_path with section overrides."""

    def _make(**sections: Any) -> StoreSettings:
        return StoreSettings.from_cli(root=tmp_path, **sections)

    return _make


@pytest.fixture
def settings(make_settings: Callable[..., StoreSettings]) -> StoreSettings:
    return make_settings()


@pytest.fixture
def store(settings: StoreSettings) -> Generator[GameStore]:
    """Fully initialized store on a temp directory."""
    s = GameStore(settings)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def _isolated_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to tmp_path so the CLI opens an isolated store.

    Use via ``@pytest.mark.usefixtures("_isolated_root")`` on command test
    classes.
    """
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def new_player(store: GameStore) -> Callable[..., PlayerAggregate]:
    """Create an account and return an empty aggregate for it.

    Skills and experience cover every configured skill, so the aggregate
    saves cleanly as returned.
    """
    accounts = AccountRepository(store)
    counter = iter(range(1, 1000))

    def _new(username: str | None = None, **fields: Any) -> PlayerAggregate:
        name = username or f"player{next(counter)}"
        pid = accounts.create_player(name, "hash")
        skill_count = len(store.schema.skills)
        fields.setdefault("skills", dict.fromkeys(range(skill_count), 1))
        fields.setdefault("experience", dict.fromkeys(range(skill_count), 0))
        return PlayerAggregate(player_id=pid, username=name, **fields)

    return _new


def items(*catalog_ids: int, **attrs: Any) -> list[ItemInstance]:
    """Fresh unassigned instances, one per catalog id."""
    return [ItemInstance(catalog_id=c, **attrs) for c in catalog_ids]


def full_skills(value: int = 1) -> dict[int, int]:
    return dict.fromkeys(range(len(DEFAULT_SKILLS)), value)
