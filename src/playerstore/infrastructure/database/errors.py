"""Persistence error taxonomy and SQLAlchemy error translation.

Every failure surfaced by the persistence layer is a :class:`PersistenceError`.
Driver and SQLAlchemy errors are wrapped at the transaction boundary by
:func:`translate_errors`; integrity failures keep their own subclass so a
caller may split them out, but they remain ``ConnectivityError`` instances
because the store reports both on the same failure channel.

"Not found" is never an exception: load calls return ``None``.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

if TYPE_CHECKING:
    from collections.abc import Iterator


class PersistenceError(Exception):
    """Base class for every error raised by playerstore."""

    code = "PERSISTENCE"


class ConnectivityError(PersistenceError):
    """The store was unreachable or a statement failed to execute."""

    code = "CONNECTIVITY"


class ConstraintViolationError(ConnectivityError):
    """A write was rejected by a key or foreign-key constraint."""

    code = "CONSTRAINT"


class InvalidStateError(PersistenceError):
    """A caller violated a precondition (programming error, never retried)."""

    code = "INVALID_STATE"


@contextmanager
def translate_errors(operation: str) -> Iterator[None]:
    """Re-raise SQLAlchemy errors raised in the block as PersistenceErrors.

    Errors that are already :class:`PersistenceError` pass through untouched.
    """
    try:
        yield
    except IntegrityError as exc:
        msg = f"{operation}: constraint violated: {exc.orig}"
        raise ConstraintViolationError(msg) from exc
    except SQLAlchemyError as exc:
        msg = f"{operation}: {exc}"
        raise ConnectivityError(msg) from exc
