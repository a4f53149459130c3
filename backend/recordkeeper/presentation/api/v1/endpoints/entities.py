"""Live entity CRUD endpoints — each mutation is recorded in the audit trail."""

from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from pydantic import ValidationError

from recordkeeper.application.schemas import AuditUserSchema, EntityCreate, EntityUpdate
from recordkeeper.application.services import EntityRecordService
from recordkeeper.domain.entities import AuditEntityType, RequestContext
from recordkeeper.domain.exceptions import EntityAlreadyExistsError, EntityNotFoundError
from recordkeeper.infrastructure.dependencies import (
    get_entity_record_service,
    get_entity_type,
    get_request_context,
)

router = APIRouter(prefix="/entities", tags=["Entities"])


@router.get("/{entity_type}", response_model=list[dict[str, Any]])
async def list_entities(
    kind: AuditEntityType = Depends(get_entity_type),
    limit: int = Query(100, ge=1, le=500),
    service: EntityRecordService = Depends(get_entity_record_service),
) -> list[dict[str, Any]]:
    """List live entities of one kind, newest first."""
    return await service.list_entities(kind, limit=limit)


@router.get("/{entity_type}/{entity_id}", response_model=dict[str, Any])
async def get_entity(
    entity_id: str,
    kind: AuditEntityType = Depends(get_entity_type),
    service: EntityRecordService = Depends(get_entity_record_service),
) -> dict[str, Any]:
    """Retrieve a single live entity."""
    try:
        return await service.get_entity(kind, entity_id)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/{entity_type}", response_model=dict[str, Any], status_code=status.HTTP_201_CREATED)
async def create_entity(
    data: EntityCreate,
    kind: AuditEntityType = Depends(get_entity_type),
    context: RequestContext = Depends(get_request_context),
    service: EntityRecordService = Depends(get_entity_record_service),
) -> dict[str, Any]:
    """Create an entity. History is recorded when an actor is given."""
    actor = data.actor.to_domain() if data.actor else None
    try:
        return await service.create_entity(
            kind, data.data, actor, entity_id=data.id, context=context,
        )
    except EntityAlreadyExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.put("/{entity_type}/{entity_id}", response_model=dict[str, Any])
async def update_entity(
    entity_id: str,
    data: EntityUpdate,
    kind: AuditEntityType = Depends(get_entity_type),
    context: RequestContext = Depends(get_request_context),
    service: EntityRecordService = Depends(get_entity_record_service),
) -> dict[str, Any]:
    """Merge fields into an entity. History is recorded when an actor is given."""
    actor = data.actor.to_domain() if data.actor else None
    try:
        return await service.update_entity(kind, entity_id, data.data, actor, context=context)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/{entity_type}/{entity_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entity(
    entity_id: str,
    kind: AuditEntityType = Depends(get_entity_type),
    x_audit_uid: str | None = Header(None),
    x_audit_name: str | None = Header(None),
    x_audit_email: str | None = Header(None),
    context: RequestContext = Depends(get_request_context),
    service: EntityRecordService = Depends(get_entity_record_service),
) -> None:
    """Delete an entity. The acting user comes from the X-Audit-* headers.

    The headers go through the same validation as a body-supplied actor.
    """
    actor = None
    if x_audit_uid or x_audit_email:
        try:
            actor = AuditUserSchema(
                uid=x_audit_uid or "", display_name=x_audit_name or "", email=x_audit_email or "",
            ).to_domain()
        except ValidationError as e:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=e.errors(include_url=False, include_context=False),
            )
    try:
        await service.delete_entity(kind, entity_id, actor, context=context)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
