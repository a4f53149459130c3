from .audit import (
    AUDIT_LOGS_COLLECTION,
    AuditEntityType,
    AuditLogEntry,
    AuditLogFilter,
    AuditOperation,
    AuditUser,
    FieldChange,
    HistoryEntry,
    HistoryQueryOptions,
    RecordHistoryResult,
    RequestContext,
    RollbackRequest,
    RollbackResult,
    Snapshot,
    history_collection_path,
)

__all__ = [
    "AUDIT_LOGS_COLLECTION",
    "AuditEntityType",
    "AuditLogEntry",
    "AuditLogFilter",
    "AuditOperation",
    "AuditUser",
    "FieldChange",
    "HistoryEntry",
    "HistoryQueryOptions",
    "RecordHistoryResult",
    "RequestContext",
    "RollbackRequest",
    "RollbackResult",
    "Snapshot",
    "history_collection_path",
]
