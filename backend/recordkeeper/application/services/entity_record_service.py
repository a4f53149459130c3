"""Application service (use case) for live entity CRUD with audit recording."""

import logging
from collections.abc import Callable
from typing import Any
from uuid import uuid4

from recordkeeper.application.interfaces import DocumentStore, OrderBy
from recordkeeper.application.services.history_recorder import HistoryRecorder
from recordkeeper.domain.diff import compute_changes
from recordkeeper.domain.entities import (
    AuditEntityType,
    AuditOperation,
    AuditUser,
    FieldChange,
    RequestContext,
)
from recordkeeper.domain.exceptions import EntityAlreadyExistsError, EntityNotFoundError
from recordkeeper.domain.timestamps import utc_now_iso

logger = logging.getLogger(__name__)

_READ_ONLY_FIELDS = frozenset({"id", "createdAt", "updatedAt"})


class EntityRecordService:
    """Orchestrates entity CRUD. Depends on the store and history recorder ports (DI).

    Each mutation reads the old state, writes the new state, and then appends
    history. Passing no actor skips history for that call. History failures
    are logged and never fail the mutation itself.
    """

    def __init__(
        self,
        store: DocumentStore,
        recorder: HistoryRecorder,
        now: Callable[[], str] = utc_now_iso,
    ):
        self._store = store
        self._recorder = recorder
        self._now = now

    async def get_entity(self, entity_type: AuditEntityType | str, entity_id: str) -> dict[str, Any]:
        kind = AuditEntityType.parse(entity_type)
        document = await self._store.get(kind.collection_name, entity_id)
        if document is None:
            raise EntityNotFoundError(kind.value, entity_id)
        return document

    async def list_entities(
        self,
        entity_type: AuditEntityType | str,
        *,
        limit: int = 100,
    ) -> list[dict[str, Any]]:
        kind = AuditEntityType.parse(entity_type)
        return await self._store.query(
            kind.collection_name,
            order_by=OrderBy("createdAt", descending=True),
            limit=limit,
        )

    async def create_entity(
        self,
        entity_type: AuditEntityType | str,
        data: dict[str, Any],
        actor: AuditUser | None = None,
        *,
        entity_id: str | None = None,
        context: RequestContext | None = None,
    ) -> dict[str, Any]:
        """Create an entity under ``entity_id`` or a generated uuid.

        Raises:
            EntityAlreadyExistsError: If the id is already taken. Replacing a
                live record would bypass the update diff.
        """
        kind = AuditEntityType.parse(entity_type)
        entity_id = entity_id or str(uuid4())
        if await self._store.get(kind.collection_name, entity_id) is not None:
            raise EntityAlreadyExistsError(kind.value, entity_id)

        created_at = self._now()

        fields = {key: value for key, value in data.items() if key not in _READ_ONLY_FIELDS}
        document = {**fields, "createdAt": created_at, "updatedAt": created_at}
        await self._store.put(kind.collection_name, entity_id, document)

        snapshot = {"id": entity_id, **document}
        if actor is not None:
            await self._record(
                kind, entity_id, AuditOperation.CREATE,
                compute_changes(None, snapshot), snapshot, actor, context,
            )
        return snapshot

    async def update_entity(
        self,
        entity_type: AuditEntityType | str,
        entity_id: str,
        updates: dict[str, Any],
        actor: AuditUser | None = None,
        *,
        context: RequestContext | None = None,
    ) -> dict[str, Any]:
        """Merge ``updates`` into the entity. History is written only if something changed."""
        old = await self.get_entity(entity_type, entity_id)
        kind = AuditEntityType.parse(entity_type)

        fields = {key: value for key, value in updates.items() if key not in _READ_ONLY_FIELDS}
        fields["updatedAt"] = self._now()
        await self._store.update(kind.collection_name, entity_id, fields)

        new = {**old, **fields}
        if actor is not None:
            changes = compute_changes(old, new)
            if changes:
                await self._record(kind, entity_id, AuditOperation.UPDATE, changes, new, actor, context)
        return new

    async def delete_entity(
        self,
        entity_type: AuditEntityType | str,
        entity_id: str,
        actor: AuditUser | None = None,
        *,
        context: RequestContext | None = None,
    ) -> bool:
        """Delete the live document. History stays; a tombstone entry is appended."""
        old = await self.get_entity(entity_type, entity_id)
        kind = AuditEntityType.parse(entity_type)

        deleted = await self._store.delete(kind.collection_name, entity_id)

        if actor is not None:
            tombstone = {"deleted": True, "deletedAt": self._now()}
            await self._record(
                kind, entity_id, AuditOperation.DELETE,
                compute_changes(old, {}), tombstone, actor, context,
            )
        return deleted

    async def _record(
        self,
        kind: AuditEntityType,
        entity_id: str,
        operation: AuditOperation,
        changes: list[FieldChange],
        snapshot: dict[str, Any],
        actor: AuditUser,
        context: RequestContext | None,
    ) -> None:
        try:
            await self._recorder.record_history(
                kind, entity_id, operation, changes, snapshot, actor, context=context,
            )
        except Exception:
            logger.exception("Failed to record %s history for %s/%s", operation.value, kind.value, entity_id)
