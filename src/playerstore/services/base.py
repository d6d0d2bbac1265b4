"""BaseService: shared foundation for all playerstore services.

Every service receives a :class:`GameStore` at construction time.
Repositories do the SQL and raise; services translate the outcome into
a :class:`ServiceResult`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from playerstore.infrastructure.database.errors import PersistenceError
from playerstore.services.result import ServiceResult
from playerstore.services.telemetry import instrument_engine

if TYPE_CHECKING:
    from playerstore.infrastructure.store import GameStore

logger = logging.getLogger(__name__)


class BaseService:
    """Abstract base for all service-layer classes.

    Usage::

        class PlayerService(BaseService):
            def save(self, player: PlayerAggregate) -> ServiceResult:
                try:
                    self._players.save(player)
                except PersistenceError as exc:
                    return self._failure("save_player", exc)
                ...
    """

    def __init__(self, store: GameStore) -> None:
        self._store = store
        instrument_engine(store.engine)

    @staticmethod
    def _failure(op: str, exc: PersistenceError) -> ServiceResult:
        """Map a persistence exception to an error result."""
        logger.debug("%s failed: %s", op, exc, exc_info=True)
        return ServiceResult.failure(op, exc.code, str(exc))
