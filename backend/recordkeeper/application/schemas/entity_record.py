"""Pydantic DTOs for live entity CRUD."""

from typing import Any

from pydantic import BaseModel, Field

from recordkeeper.application.schemas.audit import AuditUserSchema


class EntityCreate(BaseModel):
    """Schema for creating an entity — ``data`` is stored as-is.

    Without an ``actor`` the entity is created but no history is recorded.
    """

    data: dict[str, Any] = Field(
        ..., examples=[{"name": "田中", "phone": "090-0000-0000"}],
    )
    id: str | None = Field(None, min_length=1, max_length=64)
    actor: AuditUserSchema | None = None


class EntityUpdate(BaseModel):
    """Schema for updating an entity — top-level fields in ``data`` are merged."""

    data: dict[str, Any] = Field(..., examples=[{"phone": "080-1111-1111"}])
    actor: AuditUserSchema | None = None
