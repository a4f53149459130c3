"""Rollback engine — restores an entity to a prior version as a new forward entry.

History is never edited. Rolling back writes the target snapshot over the
live document and then records an ordinary history entry with operation
``rollback`` that points at both the version it replaced and the version it
restored. Restoring a deleted entity is a rollback to the newest version that
is not a delete.

Every outcome is returned as a RollbackResult; callers never see an
exception from this module.
"""

import logging
from collections.abc import Callable
from typing import Any

from recordkeeper.application.interfaces import DocumentStore
from recordkeeper.application.services.history_reader import HistoryReader
from recordkeeper.application.services.history_recorder import HistoryRecorder
from recordkeeper.domain.diff import compute_changes
from recordkeeper.domain.entities import (
    AuditEntityType,
    AuditOperation,
    AuditUser,
    RequestContext,
    RollbackRequest,
    RollbackResult,
)
from recordkeeper.domain.timestamps import utc_now_iso

logger = logging.getLogger(__name__)

NO_HISTORY_ERROR = "No history exists"
SAME_VERSION_ERROR = "Target version is the same as the current version"
NO_RESTORABLE_VERSION_ERROR = "No restorable version found"


class RollbackService:
    """Orchestrates rollback and restore-deleted for a single entity."""

    def __init__(
        self,
        store: DocumentStore,
        reader: HistoryReader,
        recorder: HistoryRecorder,
        now: Callable[[], str] = utc_now_iso,
    ):
        self._store = store
        self._reader = reader
        self._recorder = recorder
        self._now = now

    async def rollback_to_version(
        self,
        request: RollbackRequest,
        actor: AuditUser,
        context: RequestContext | None = None,
    ) -> RollbackResult:
        """Make ``request.target_version`` the live state of the entity.

        Steps: load the current version, load the target entry, write the
        target snapshot to the live document (creating it if it was
        deleted), diff the previous current snapshot against the restored
        data, and record a ``rollback`` entry. A target equal to the current
        version is rejected without writing anything.
        """
        entity_id = request.entity_id
        target_version = request.target_version

        try:
            kind = AuditEntityType.parse(request.entity_type)

            current_version = await self._reader.get_latest_version(kind, entity_id)
            if current_version == 0:
                return RollbackResult.failure(NO_HISTORY_ERROR)

            target_entry = await self._reader.get_history_by_version(kind, entity_id, target_version)
            if target_entry is None:
                return RollbackResult.failure(f"Version {target_version} not found")

            if target_version == current_version:
                return RollbackResult.failure(SAME_VERSION_ERROR, new_version=current_version)

            restore_data = {key: value for key, value in target_entry.snapshot.items() if key != "id"}
            restore_data["updatedAt"] = self._now()

            restore_data = await self._write_live_document(kind, entity_id, restore_data)

            current_snapshot = await self._reader.get_version_snapshot(kind, entity_id, current_version)
            changes = compute_changes(current_snapshot or {}, restore_data)

            await self._recorder.record_history(
                kind,
                entity_id,
                AuditOperation.ROLLBACK,
                changes,
                {"id": entity_id, **restore_data},
                actor,
                rollback_from_version=current_version,
                rollback_to_version=target_version,
                context=context,
            )

            new_version = await self._reader.get_latest_version(kind, entity_id)

            logger.info(
                "Rolled back %s/%s from v%d to v%d as v%d by %s%s",
                kind.value,
                entity_id,
                current_version,
                target_version,
                new_version,
                actor.email,
                f" (reason: {request.reason})" if request.reason else "",
            )

            return RollbackResult(success=True, new_version=new_version, restored_data=restore_data)
        except Exception as exc:
            logger.exception("Rollback of %s/%s to v%d failed", request.entity_type, entity_id, target_version)
            return RollbackResult.failure(f"Rollback failed: {exc}")

    async def restore_deleted(
        self,
        entity_type: AuditEntityType | str,
        entity_id: str,
        actor: AuditUser,
        context: RequestContext | None = None,
    ) -> RollbackResult:
        """Roll back to the newest version whose operation is not a delete.

        Walks the versions from newest to oldest with one read per version,
        which is fine for the short histories business records accumulate.
        """
        try:
            kind = AuditEntityType.parse(entity_type)

            latest_version = await self._reader.get_latest_version(kind, entity_id)
            if latest_version == 0:
                return RollbackResult.failure(NO_HISTORY_ERROR)

            for version in range(latest_version, 0, -1):
                entry = await self._reader.get_history_by_version(kind, entity_id, version)
                if entry is not None and entry.operation != AuditOperation.DELETE:
                    logger.info("Restoring %s/%s from v%d", kind.value, entity_id, version)
                    return await self.rollback_to_version(
                        RollbackRequest(entity_type=kind, entity_id=entity_id, target_version=version),
                        actor,
                        context=context,
                    )

            return RollbackResult.failure(NO_RESTORABLE_VERSION_ERROR)
        except Exception as exc:
            logger.exception("Restore of %s/%s failed", entity_type, entity_id)
            return RollbackResult.failure(f"Restore failed: {exc}")

    async def _write_live_document(
        self,
        kind: AuditEntityType,
        entity_id: str,
        restore_data: dict[str, Any],
    ) -> dict[str, Any]:
        """Replace the live document with ``restore_data``.

        The write is a full replacement, so fields added after the target
        version disappear instead of surviving as None. A deleted document is
        recreated.

        Returns:
            The data actually written, without ``id``.
        """
        collection = kind.collection_name
        if await self._store.get(collection, entity_id) is None:
            logger.info("%s/%s no longer exists, recreating it from history", kind.value, entity_id)

        await self._store.put(collection, entity_id, restore_data)
        return restore_data
