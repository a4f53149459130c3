"""Read side of the audit trail — entity history, versions, and ledger search."""

import logging
from typing import Any

from recordkeeper.application.interfaces import DocumentStore, FieldFilter, OrderBy
from recordkeeper.domain.entities import (
    AUDIT_LOGS_COLLECTION,
    AuditEntityType,
    AuditLogEntry,
    AuditLogFilter,
    HistoryEntry,
    HistoryQueryOptions,
    history_collection_path,
)

logger = logging.getLogger(__name__)


class HistoryReader:
    """Read-only queries over history streams and the audit ledger."""

    def __init__(self, store: DocumentStore):
        self._store = store

    async def get_history(
        self,
        entity_type: AuditEntityType | str,
        entity_id: str,
        options: HistoryQueryOptions | None = None,
    ) -> list[HistoryEntry]:
        """Return an entity's history, newest version first.

        ``options.start_after_version`` continues a previous page: the entry
        with that version is looked up and used as the cursor. If no such
        entry exists the first page is returned.
        """
        options = options or HistoryQueryOptions()
        path = history_collection_path(entity_type, entity_id)

        filters: list[FieldFilter] = []
        if options.operation is not None:
            filters.append(FieldFilter("operation", options.operation.value))

        cursor: str | None = None
        if options.start_after_version is not None:
            seed = await self._store.query(
                path,
                filters=[FieldFilter("version", options.start_after_version)],
                limit=1,
            )
            if seed:
                cursor = seed[0]["id"]

        documents = await self._store.query(
            path,
            filters=filters,
            order_by=OrderBy("version", descending=True, numeric=True),
            limit=options.limit,
            start_after=cursor,
        )
        return [HistoryEntry.from_document(doc) for doc in documents]

    async def get_history_by_version(
        self,
        entity_type: AuditEntityType | str,
        entity_id: str,
        version: int,
    ) -> HistoryEntry | None:
        path = history_collection_path(entity_type, entity_id)
        documents = await self._store.query(
            path, filters=[FieldFilter("version", version)], limit=1
        )
        if not documents:
            return None
        return HistoryEntry.from_document(documents[0])

    async def get_version_snapshot(
        self,
        entity_type: AuditEntityType | str,
        entity_id: str,
        version: int,
    ) -> dict[str, Any] | None:
        entry = await self.get_history_by_version(entity_type, entity_id, version)
        return entry.snapshot if entry else None

    async def get_latest_version(
        self,
        entity_type: AuditEntityType | str,
        entity_id: str,
    ) -> int:
        """Highest recorded version, or 0 if the entity has no history."""
        path = history_collection_path(entity_type, entity_id)
        documents = await self._store.query(
            path, order_by=OrderBy("version", descending=True, numeric=True), limit=1
        )
        if not documents:
            return 0
        return int(documents[0]["version"])

    async def search_audit_logs(self, audit_filter: AuditLogFilter | None = None) -> list[AuditLogEntry]:
        """Search the cross-entity audit ledger, newest first.

        Only one equality filter is sent to the store, picked in the order
        entity type, entity id, operation, actor email, actor uid; composite
        filters would need composite indexes. The remaining criteria, the
        date range included, are applied to the fetched page, so a search can
        return fewer than ``limit`` entries even when more match.
        """
        f = audit_filter or AuditLogFilter()

        criteria: list[FieldFilter] = []
        if f.entity_type is not None:
            criteria.append(FieldFilter("entityType", AuditEntityType.parse(f.entity_type).value))
        if f.entity_id is not None:
            criteria.append(FieldFilter("entityId", f.entity_id))
        if f.operation is not None:
            criteria.append(FieldFilter("operation", f.operation.value))
        if f.changed_by_email is not None:
            criteria.append(FieldFilter("changedBy.email", f.changed_by_email))
        if f.changed_by_uid is not None:
            criteria.append(FieldFilter("changedBy.uid", f.changed_by_uid))

        server_filters = criteria[:1]
        client_filters = criteria[1:]

        documents = await self._store.query(
            AUDIT_LOGS_COLLECTION,
            filters=server_filters,
            order_by=OrderBy("changedAt", descending=True),
            limit=f.limit,
        )

        results = [AuditLogEntry.from_document(doc) for doc in documents]

        for criterion in client_filters:
            results = [entry for entry in results if _entry_value(entry, criterion.field) == criterion.value]
        if f.start_date:
            results = [entry for entry in results if entry.changed_at >= f.start_date]
        if f.end_date:
            results = [entry for entry in results if entry.changed_at <= f.end_date]

        logger.debug(
            "Audit search server_filter=%s client_filters=%d -> %d entries",
            server_filters[0].field if server_filters else None,
            len(client_filters),
            len(results),
        )
        return results

    async def get_history_count(self, entity_type: AuditEntityType | str, entity_id: str) -> int:
        return await self._store.count(history_collection_path(entity_type, entity_id))

    async def has_history(self, entity_type: AuditEntityType | str, entity_id: str) -> bool:
        return await self.get_history_count(entity_type, entity_id) > 0


def _entry_value(entry: AuditLogEntry, field: str) -> Any:
    if field == "entityId":
        return entry.entity_id
    if field == "operation":
        return entry.operation.value
    if field == "changedBy.email":
        return entry.changed_by.email
    if field == "changedBy.uid":
        return entry.changed_by.uid
    return entry.entity_type.value
