"""Tests for shared service-layer helper functions."""

from __future__ import annotations

import re
from pathlib import Path
from unittest.mock import patch

from playerstore.services import _helpers
from playerstore.services._helpers import backup_database, now_compact, sqlite_path


class TestNowCompact:
    def test_format(self) -> None:
        assert re.fullmatch(r"\d{8}T\d{6}", now_compact())


class TestSqlitePath:
    def test_file_url(self, tmp_path: Path) -> None:
        assert sqlite_path(f"sqlite:///{tmp_path / 'x.db'}") == tmp_path / "x.db"

    def test_memory_and_server_urls(self) -> None:
        assert sqlite_path("sqlite://") is None
        assert sqlite_path("sqlite:///:memory:") is None
        assert sqlite_path("postgresql://user@localhost/game") is None


class TestBackupDatabase:
    def test_copies_file(self, tmp_path: Path) -> None:
        db = tmp_path / "game.db"
        db.write_bytes(b"data")
        path = backup_database(f"sqlite:///{db}", tmp_path / "backups", max_count=3)
        assert path is not None
        assert path.read_bytes() == b"data"
        assert path.name.startswith("playerstore-")

    def test_missing_file(self, tmp_path: Path) -> None:
        assert backup_database(f"sqlite:///{tmp_path / 'none.db'}", tmp_path / "b", max_count=3) is None

    def test_prunes_oldest(self, tmp_path: Path) -> None:
        db = tmp_path / "game.db"
        db.write_bytes(b"data")
        backups = tmp_path / "backups"
        stamps = iter(["20260101T000000", "20260102T000000", "20260103T000000"])
        with patch.object(_helpers, "now_compact", side_effect=lambda: next(stamps)):
            for _ in range(3):
                backup_database(f"sqlite:///{db}", backups, max_count=2)
        names = sorted(p.name for p in backups.iterdir())
        assert names == ["playerstore-20260102T000000.db", "playerstore-20260103T000000.db"]
