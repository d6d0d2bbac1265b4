"""Shared service-layer helper functions."""

from __future__ import annotations

import shutil
from datetime import UTC, datetime
from pathlib import Path

from sqlalchemy.engine import make_url


def now_compact() -> str:
    """Current UTC time as compact ISO (YYYYMMDDTHHmmss, for backup filenames)."""
    return datetime.now(UTC).strftime("%Y%m%dT%H%M%S")


def sqlite_path(url: str) -> Path | None:
    """The database file behind a SQLite URL, or None for other backends."""
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite" or not parsed.database or parsed.database == ":memory:":
        return None
    return Path(parsed.database)


def backup_database(url: str, backup_dir: Path, *, max_count: int) -> Path | None:
    """Copy a SQLite database file into *backup_dir*, pruning old copies.

    Returns the backup path, or None when *url* is not a file-backed SQLite
    database (server databases are backed up by their own tooling).
    """
    db_path = sqlite_path(url)
    if db_path is None or not db_path.exists():
        return None
    backup_dir.mkdir(parents=True, exist_ok=True)
    backup_path = backup_dir / f"playerstore-{now_compact()}.db"
    shutil.copy2(db_path, backup_path)

    backups = sorted(backup_dir.glob("playerstore-*.db"))
    for old in backups[: max(0, len(backups) - max_count)]:
        old.unlink(missing_ok=True)
    return backup_path
