from .audit import (
    AuditUserSchema,
    AuditUserResponse,
    FieldChangeResponse,
    HistoryEntryResponse,
    AuditLogEntryResponse,
    HistoryCountResponse,
    LatestVersionResponse,
    RollbackRequestSchema,
    RestoreRequestSchema,
    RollbackResultResponse,
)
from .entity_record import EntityCreate, EntityUpdate

__all__ = [
    "AuditUserSchema",
    "AuditUserResponse",
    "FieldChangeResponse",
    "HistoryEntryResponse",
    "AuditLogEntryResponse",
    "HistoryCountResponse",
    "LatestVersionResponse",
    "RollbackRequestSchema",
    "RestoreRequestSchema",
    "RollbackResultResponse",
    "EntityCreate",
    "EntityUpdate",
]
