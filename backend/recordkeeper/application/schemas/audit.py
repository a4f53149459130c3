"""Pydantic DTOs (Data Transfer Objects) for history, audit log, and rollback."""

from typing import Any

from pydantic import BaseModel, Field, computed_field

from recordkeeper.domain.diff import format_change, get_field_label
from recordkeeper.domain.entities import AuditEntityType, AuditOperation, AuditUser, FieldChange


class AuditUserSchema(BaseModel):
    """The acting user, as supplied by the caller."""

    uid: str = Field(..., min_length=1, max_length=128)
    display_name: str = Field("", max_length=255, examples=["山田 太郎"])
    email: str = Field(..., min_length=3, max_length=255, examples=["yamada@example.co.jp"])

    model_config = {"from_attributes": True}

    def to_domain(self) -> AuditUser:
        return AuditUser(uid=self.uid, display_name=self.display_name, email=self.email)


class AuditUserResponse(BaseModel):
    """The recorded actor. Unconstrained so that any stored entry stays readable."""

    uid: str
    display_name: str = ""
    email: str = ""

    model_config = {"from_attributes": True}


class FieldChangeResponse(BaseModel):
    field: str
    old_value: Any = None
    new_value: Any = None

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def label(self) -> str:
        """Display label for the field, e.g. ``phone`` → 電話番号."""
        return get_field_label(self.field)

    @computed_field
    @property
    def summary(self) -> str:
        return format_change(FieldChange(self.field, self.old_value, self.new_value))


class HistoryEntryResponse(BaseModel):
    """Schema returned for one entry of an entity's history stream."""

    id: str
    version: int
    operation: AuditOperation
    changed_by: AuditUserResponse
    changed_at: str
    changes: list[FieldChangeResponse]
    snapshot: dict[str, Any]
    rollback_from_version: int | None = None
    rollback_to_version: int | None = None

    model_config = {"from_attributes": True}


class AuditLogEntryResponse(BaseModel):
    """Schema returned for one entry of the cross-entity audit ledger."""

    id: str
    entity_type: AuditEntityType
    entity_id: str
    operation: AuditOperation
    changed_by: AuditUserResponse
    changed_at: str
    version: int
    changes: list[FieldChangeResponse]
    ip_address: str | None = None
    user_agent: str | None = None
    session_id: str | None = None

    model_config = {"from_attributes": True}


class HistoryCountResponse(BaseModel):
    count: int
    has_history: bool


class LatestVersionResponse(BaseModel):
    version: int


class RollbackRequestSchema(BaseModel):
    """Schema for rolling an entity back to a prior version."""

    target_version: int = Field(..., ge=1)
    reason: str | None = Field(None, max_length=1000)
    actor: AuditUserSchema


class RestoreRequestSchema(BaseModel):
    """Schema for restoring a deleted entity from its history."""

    actor: AuditUserSchema


class RollbackResultResponse(BaseModel):
    success: bool
    new_version: int
    restored_data: dict[str, Any]
    error: str | None = None

    model_config = {"from_attributes": True}
