"""SQLAlchemy Core engine, prefixed schema, item status store and registry."""

from playerstore.infrastructure.database.engine import create_db_engine, init_database
from playerstore.infrastructure.database.errors import (
    ConnectivityError,
    ConstraintViolationError,
    InvalidStateError,
    PersistenceError,
)
from playerstore.infrastructure.database.item_registry import ItemIdRegistry
from playerstore.infrastructure.database.schema import Schema, build_schema

__all__ = [
    "ConnectivityError",
    "ConstraintViolationError",
    "InvalidStateError",
    "ItemIdRegistry",
    "PersistenceError",
    "Schema",
    "build_schema",
    "create_db_engine",
    "init_database",
]
