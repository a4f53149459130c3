"""Domain entities for the audit trail — history entries, ledger entries, rollback results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from recordkeeper.domain.exceptions import UnknownEntityTypeError

Snapshot = dict[str, Any]


class AuditOperation(str, Enum):
    """Kinds of mutation recorded in an entity's history."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    RESTORE = "restore"    # undelete
    ROLLBACK = "rollback"  # return to a specific prior version


class AuditEntityType(str, Enum):
    """Business record kinds tracked by the audit engine."""

    CUSTOMER = "Customer"
    DEAL = "Deal"
    RELATIONSHIP = "Relationship"
    TREE_BURIAL_DEAL = "TreeBurialDeal"
    BURIAL_PERSON = "BurialPerson"

    @property
    def collection_name(self) -> str:
        """Name of the live-entity collection for this kind."""
        return _COLLECTIONS[self]

    @classmethod
    def parse(cls, value: "AuditEntityType | str") -> "AuditEntityType":
        """Coerce a raw value to an entity type, raising for unknown kinds."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnknownEntityTypeError(str(value)) from None


_COLLECTIONS: dict[AuditEntityType, str] = {
    AuditEntityType.CUSTOMER: "Customers",
    AuditEntityType.DEAL: "Deals",
    AuditEntityType.RELATIONSHIP: "Relationships",
    AuditEntityType.TREE_BURIAL_DEAL: "TreeBurialDeals",
    AuditEntityType.BURIAL_PERSON: "BurialPersons",
}

AUDIT_LOGS_COLLECTION = "AuditLogs"


def history_collection_path(entity_type: AuditEntityType | str, entity_id: str) -> str:
    """Path of the per-entity history stream, e.g. ``Customers/abc/History``."""
    kind = AuditEntityType.parse(entity_type)
    return f"{kind.collection_name}/{entity_id}/History"


@dataclass(frozen=True)
class AuditUser:
    """The actor a history entry is attributed to. Supplied by the caller."""

    uid: str
    display_name: str
    email: str

    def to_document(self) -> dict[str, str]:
        return {"uid": self.uid, "displayName": self.display_name, "email": self.email}

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "AuditUser":
        return cls(
            uid=data.get("uid", ""),
            display_name=data.get("displayName", ""),
            email=data.get("email", ""),
        )


@dataclass(frozen=True)
class FieldChange:
    """One field's transition. Absent values are stored as None."""

    field: str
    old_value: Any = None
    new_value: Any = None

    def to_document(self) -> dict[str, Any]:
        return {"field": self.field, "oldValue": self.old_value, "newValue": self.new_value}

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "FieldChange":
        return cls(
            field=data["field"],
            old_value=data.get("oldValue"),
            new_value=data.get("newValue"),
        )


@dataclass(frozen=True)
class HistoryEntry:
    """Immutable per-entity history record.

    Stored under ``{EntityCollection}/{entityId}/History``. ``snapshot`` is the
    full entity state after the operation; for deletes it is a tombstone.
    """

    id: str
    version: int
    operation: AuditOperation
    changed_by: AuditUser
    changed_at: str  # ISO 8601
    changes: list[FieldChange] = field(default_factory=list)
    snapshot: Snapshot = field(default_factory=dict)
    rollback_from_version: int | None = None
    rollback_to_version: int | None = None

    def to_document(self) -> dict[str, Any]:
        """Serialize without ``id``; the store assigns it on append."""
        doc: dict[str, Any] = {
            "version": self.version,
            "operation": self.operation.value,
            "changedBy": self.changed_by.to_document(),
            "changedAt": self.changed_at,
            "changes": [c.to_document() for c in self.changes],
            "snapshot": self.snapshot,
        }
        if self.rollback_from_version is not None:
            doc["rollbackFromVersion"] = self.rollback_from_version
        if self.rollback_to_version is not None:
            doc["rollbackToVersion"] = self.rollback_to_version
        return doc

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "HistoryEntry":
        return cls(
            id=data.get("id", ""),
            version=int(data["version"]),
            operation=AuditOperation(data["operation"]),
            changed_by=AuditUser.from_document(data.get("changedBy") or {}),
            changed_at=data.get("changedAt", ""),
            changes=[FieldChange.from_document(c) for c in data.get("changes") or []],
            snapshot=data.get("snapshot") or {},
            rollback_from_version=data.get("rollbackFromVersion"),
            rollback_to_version=data.get("rollbackToVersion"),
        )


@dataclass(frozen=True)
class AuditLogEntry:
    """Denormalized mirror of a HistoryEntry in the global ``AuditLogs`` ledger.

    Written independently of the history entry, so the two can drift apart
    when one of the writes fails.
    """

    id: str
    entity_type: AuditEntityType
    entity_id: str
    operation: AuditOperation
    changed_by: AuditUser
    changed_at: str
    version: int
    changes: list[FieldChange] = field(default_factory=list)
    ip_address: str | None = None
    user_agent: str | None = None
    session_id: str | None = None

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "entityType": self.entity_type.value,
            "entityId": self.entity_id,
            "operation": self.operation.value,
            "changedBy": self.changed_by.to_document(),
            "changedAt": self.changed_at,
            "changes": [c.to_document() for c in self.changes],
            "version": self.version,
        }
        if self.ip_address is not None:
            doc["ipAddress"] = self.ip_address
        if self.user_agent is not None:
            doc["userAgent"] = self.user_agent
        if self.session_id is not None:
            doc["sessionId"] = self.session_id
        return doc

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "AuditLogEntry":
        return cls(
            id=data.get("id", ""),
            entity_type=AuditEntityType(data["entityType"]),
            entity_id=data["entityId"],
            operation=AuditOperation(data["operation"]),
            changed_by=AuditUser.from_document(data.get("changedBy") or {}),
            changed_at=data.get("changedAt", ""),
            version=int(data["version"]),
            changes=[FieldChange.from_document(c) for c in data.get("changes") or []],
            ip_address=data.get("ipAddress"),
            user_agent=data.get("userAgent"),
            session_id=data.get("sessionId"),
        )


@dataclass(frozen=True)
class RequestContext:
    """Optional request metadata copied onto audit ledger entries."""

    ip_address: str | None = None
    user_agent: str | None = None
    session_id: str | None = None


@dataclass
class HistoryQueryOptions:
    """Paging and filtering for a single entity's history."""

    limit: int = 50
    start_after_version: int | None = None
    operation: AuditOperation | None = None


@dataclass
class AuditLogFilter:
    """Filter for the cross-entity audit ledger search.

    Dates are ISO 8601 strings compared lexicographically against
    ``changedAt`` (inclusive on both ends).
    """

    entity_type: AuditEntityType | None = None
    entity_id: str | None = None
    operation: AuditOperation | None = None
    changed_by_uid: str | None = None
    changed_by_email: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    limit: int = 100


@dataclass
class RecordHistoryResult:
    """Ids produced by a dual history write. An empty id means that write failed."""

    history_id: str
    audit_log_id: str
    version: int


@dataclass
class RollbackRequest:
    entity_type: AuditEntityType
    entity_id: str
    target_version: int
    reason: str | None = None


@dataclass
class RollbackResult:
    """Outcome of a rollback or restore. Failures are values, never exceptions."""

    success: bool
    new_version: int
    restored_data: Snapshot = field(default_factory=dict)
    error: str | None = None

    @classmethod
    def failure(cls, error: str, new_version: int = 0) -> "RollbackResult":
        return cls(success=False, new_version=new_version, restored_data={}, error=error)
