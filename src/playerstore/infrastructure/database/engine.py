"""Database engine setup.

SQLAlchemy Core (not ORM) is used: the persistence layer converts game
entities into rows itself and has no use for identity maps or unit-of-work.

SQLite is the default backend, stored at ``{root}/.playerstore/playerstore.db``
with WAL mode and foreign keys enabled. Writers open their transaction with
``BEGIN IMMEDIATE`` (see :data:`WRITE_LOCK_OPTION`) so the database write
lock is held before any item-registry work starts.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url

if TYPE_CHECKING:
    from sqlalchemy import Connection

    from playerstore.infrastructure.database.schema import Schema

# Connection execution option requesting an IMMEDIATE transaction on SQLite.
WRITE_LOCK_OPTION = "playerstore_write_lock"


def _is_sqlite(url: str) -> bool:
    return make_url(url).get_backend_name() == "sqlite"


def _ensure_parent_dir(url: str) -> None:
    database = make_url(url).database
    if database and database != ":memory:" and not database.startswith("file:"):
        Path(database).parent.mkdir(parents=True, exist_ok=True)


def install_sqlite_listeners(engine: Engine, *, busy_timeout: float = 30.0) -> None:
    """Apply pragmas on connect and take over transaction begin.

    The pysqlite driver's own implicit BEGIN is disabled so the ``begin``
    event can choose between a deferred and an immediate transaction.
    """

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout * 1000)}")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _begin(conn: Connection) -> None:
        if conn.get_execution_options().get(WRITE_LOCK_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


def create_db_engine(url: str, *, busy_timeout: float = 30.0) -> Engine:
    """Create an engine for *url*; SQLite URLs get WAL, FKs and immediate writes.

    SQL echo goes through logging (see :func:`playerstore.config.logging.configure_logging`)
    rather than ``create_engine(echo=...)``, which writes to stdout.
    """
    if not _is_sqlite(url):
        return create_engine(url, pool_pre_ping=True)

    _ensure_parent_dir(url)
    engine = create_engine(url, connect_args={"timeout": busy_timeout})
    install_sqlite_listeners(engine, busy_timeout=busy_timeout)
    return engine


def init_database(engine: Engine, schema: Schema) -> None:
    """Create every table of *schema* that does not exist yet.

    Idempotent: safe to call against an existing database.
    """
    schema.metadata.create_all(engine)
