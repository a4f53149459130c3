"""Writes history entries to the per-entity stream and the global audit ledger."""

import logging
from collections.abc import Callable
from typing import Any

from recordkeeper.application.interfaces import DocumentStore
from recordkeeper.application.services.version_allocator import VersionAllocator
from recordkeeper.domain.entities import (
    AUDIT_LOGS_COLLECTION,
    AuditEntityType,
    AuditLogEntry,
    AuditOperation,
    AuditUser,
    FieldChange,
    HistoryEntry,
    RecordHistoryResult,
    RequestContext,
    history_collection_path,
)
from recordkeeper.domain.timestamps import utc_now_iso

logger = logging.getLogger(__name__)


class HistoryRecorder:
    """Appends one logical audit fact to two independent collections.

    Usage:
        recorder = HistoryRecorder(store, VersionAllocator(store))
        result = await recorder.record_history(
            AuditEntityType.DEAL,
            deal_id,
            AuditOperation.UPDATE,
            changes,
            snapshot,
            actor,
        )

    The history write and the ledger write are attempted separately. A failure
    in one is logged and does not stop, retry, or undo the other; the caller
    gets an empty id for the write that failed. Audit durability never blocks
    the entity mutation that triggered it.
    """

    def __init__(
        self,
        store: DocumentStore,
        allocator: VersionAllocator,
        now: Callable[[], str] = utc_now_iso,
    ):
        self._store = store
        self._allocator = allocator
        self._now = now

    async def record_history(
        self,
        entity_type: AuditEntityType | str,
        entity_id: str,
        operation: AuditOperation,
        changes: list[FieldChange],
        snapshot: dict[str, Any],
        actor: AuditUser,
        rollback_from_version: int | None = None,
        rollback_to_version: int | None = None,
        context: RequestContext | None = None,
    ) -> RecordHistoryResult:
        """Allocate a version and write the history and ledger entries.

        Args:
            entity_type: Kind of the entity that changed.
            entity_id: Id of the entity within its collection.
            operation: What happened (create, update, delete, restore, rollback).
            changes: Field-level diff for the mutation.
            snapshot: Full entity state after the mutation (tombstone for deletes).
            actor: The user the change is attributed to.
            rollback_from_version: Version that was current before a rollback.
            rollback_to_version: Version a rollback restored.
            context: Optional request metadata copied onto the ledger entry.

        Returns:
            The ids obtained (empty string for a failed write) and the version.
        """
        kind = AuditEntityType.parse(entity_type)
        changed_at = self._now()
        version = await self._allocator.next_version(kind, entity_id)

        history_id = ""
        audit_log_id = ""

        path = history_collection_path(kind, entity_id)
        try:
            entry = HistoryEntry(
                id="",
                version=version,
                operation=operation,
                changed_by=actor,
                changed_at=changed_at,
                changes=changes,
                snapshot=snapshot,
                rollback_from_version=rollback_from_version,
                rollback_to_version=rollback_to_version,
            )
            history_id = await self._store.append(path, entry.to_document())
            logger.debug("History entry %s written at %s (v%d)", history_id, path, version)
        except Exception:
            logger.exception("Failed to write history entry at %s (v%d)", path, version)

        try:
            context = context or RequestContext()
            log_entry = AuditLogEntry(
                id="",
                entity_type=kind,
                entity_id=entity_id,
                operation=operation,
                changed_by=actor,
                changed_at=changed_at,
                version=version,
                changes=changes,
                ip_address=context.ip_address,
                user_agent=context.user_agent,
                session_id=context.session_id,
            )
            audit_log_id = await self._store.append(AUDIT_LOGS_COLLECTION, log_entry.to_document())
            logger.debug("Audit log entry %s written for %s/%s", audit_log_id, kind.value, entity_id)
        except Exception:
            logger.exception(
                "Failed to write audit log entry for %s/%s (v%d)", kind.value, entity_id, version
            )

        logger.info(
            "Recorded %s of %s/%s as v%d by %s",
            operation.value,
            kind.value,
            entity_id,
            version,
            actor.email,
        )

        return RecordHistoryResult(
            history_id=history_id,
            audit_log_id=audit_log_id,
            version=version,
        )
