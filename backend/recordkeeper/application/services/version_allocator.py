"""Allocates the next version number in an entity's history stream."""

import logging
import time
from collections.abc import Callable

from recordkeeper.application.interfaces import DocumentStore
from recordkeeper.domain.entities import AuditEntityType, history_collection_path

logger = logging.getLogger(__name__)


class VersionAllocator:
    """Computes ``max(version) + 1`` over an entity's existing history.

    The full stream is read instead of an ordered query so the lookup does not
    depend on an index over ``version``. Two writers racing on the same
    entity can both receive the same number; nothing here serializes them.

    If the read fails or a stored version is not a number, the current time
    in epoch milliseconds is returned so the write can still go ahead. Such a
    version is far above any dense version, but under clock skew it may not
    exceed the timestamp fallback of an earlier failure.
    """

    def __init__(
        self,
        store: DocumentStore,
        clock: Callable[[], float] = time.time,
    ):
        self._store = store
        self._clock = clock

    async def next_version(self, entity_type: AuditEntityType | str, entity_id: str) -> int:
        path = history_collection_path(entity_type, entity_id)
        try:
            documents = await self._store.query(path)
            if not documents:
                return 1
            return max(int(doc.get("version", 0)) for doc in documents) + 1
        except Exception:
            fallback = self._fallback_version()
            logger.exception(
                "Could not read history at %s, using timestamp version %d", path, fallback
            )
            return fallback

    def _fallback_version(self) -> int:
        return int(self._clock() * 1000)
