# tableside/workflow/guard.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Set, Tuple

from ..errors import ConcurrentModification

logger = logging.getLogger(__name__)


class EntityGuard:
    """
    Refuses a second status change on an entity while one is in flight.

    Single event loop: the membership check and the add happen with no await
    in between, so no lock is needed.
    """

    def __init__(self) -> None:
        self._in_flight: Set[Tuple[str, int]] = set()

    def busy(self, entity: str, entity_id: int) -> bool:
        return (entity, entity_id) in self._in_flight

    @asynccontextmanager
    async def hold(self, entity: str, entity_id: int) -> AsyncIterator[None]:
        key = (entity, entity_id)
        if key in self._in_flight:
            logger.warning("rejecting concurrent change to %s %s", entity, entity_id)
            raise ConcurrentModification(entity, entity_id)
        self._in_flight.add(key)
        try:
            yield
        finally:
            self._in_flight.discard(key)
