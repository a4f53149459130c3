"""Entity history, rollback, and restore endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status

from recordkeeper.config import get_settings
from recordkeeper.application.schemas import (
    HistoryCountResponse,
    HistoryEntryResponse,
    LatestVersionResponse,
    RestoreRequestSchema,
    RollbackRequestSchema,
    RollbackResultResponse,
)
from recordkeeper.application.services import HistoryReader, RollbackService
from recordkeeper.domain.entities import (
    AuditEntityType,
    AuditOperation,
    HistoryQueryOptions,
    RequestContext,
    RollbackRequest,
)
from recordkeeper.domain.exceptions import HistoryVersionNotFoundError
from recordkeeper.infrastructure.dependencies import (
    get_entity_type,
    get_history_reader,
    get_request_context,
    get_rollback_service,
)

router = APIRouter(prefix="/entities/{entity_type}/{entity_id}", tags=["History"])


@router.get("/history", response_model=list[HistoryEntryResponse])
async def get_history(
    entity_id: str,
    kind: AuditEntityType = Depends(get_entity_type),
    limit: int | None = Query(None, ge=1, le=500, description="Defaults to HISTORY_PAGE_SIZE"),
    start_after_version: int | None = Query(None, ge=1, description="Continue after this version"),
    operation: AuditOperation | None = Query(None, description="Filter by operation"),
    reader: HistoryReader = Depends(get_history_reader),
) -> list[HistoryEntryResponse]:
    """Retrieve an entity's history, newest version first."""
    entries = await reader.get_history(
        kind,
        entity_id,
        HistoryQueryOptions(
            limit=limit or get_settings().history_page_size,
            start_after_version=start_after_version,
            operation=operation,
        ),
    )
    return [HistoryEntryResponse.model_validate(e, from_attributes=True) for e in entries]


@router.get("/history/count", response_model=HistoryCountResponse)
async def get_history_count(
    entity_id: str,
    kind: AuditEntityType = Depends(get_entity_type),
    reader: HistoryReader = Depends(get_history_reader),
) -> HistoryCountResponse:
    count = await reader.get_history_count(kind, entity_id)
    return HistoryCountResponse(count=count, has_history=count > 0)


@router.get("/history/latest", response_model=LatestVersionResponse)
async def get_latest_version(
    entity_id: str,
    kind: AuditEntityType = Depends(get_entity_type),
    reader: HistoryReader = Depends(get_history_reader),
) -> LatestVersionResponse:
    """Latest version number — 0 when the entity has no history."""
    return LatestVersionResponse(version=await reader.get_latest_version(kind, entity_id))


@router.get("/history/{version}", response_model=HistoryEntryResponse)
async def get_history_by_version(
    entity_id: str,
    version: int,
    kind: AuditEntityType = Depends(get_entity_type),
    reader: HistoryReader = Depends(get_history_reader),
) -> HistoryEntryResponse:
    entry = await reader.get_history_by_version(kind, entity_id, version)
    if entry is None:
        error = HistoryVersionNotFoundError(kind.value, entity_id, version)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    return HistoryEntryResponse.model_validate(entry, from_attributes=True)


@router.get("/history/{version}/snapshot", response_model=dict[str, Any])
async def get_version_snapshot(
    entity_id: str,
    version: int,
    kind: AuditEntityType = Depends(get_entity_type),
    reader: HistoryReader = Depends(get_history_reader),
) -> dict[str, Any]:
    """Full entity state as recorded at a version."""
    snapshot = await reader.get_version_snapshot(kind, entity_id, version)
    if snapshot is None:
        error = HistoryVersionNotFoundError(kind.value, entity_id, version)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    return snapshot


@router.post("/rollback", response_model=RollbackResultResponse)
async def rollback_to_version(
    entity_id: str,
    data: RollbackRequestSchema,
    kind: AuditEntityType = Depends(get_entity_type),
    context: RequestContext = Depends(get_request_context),
    service: RollbackService = Depends(get_rollback_service),
) -> RollbackResultResponse:
    """Restore a prior version as a new forward history entry.

    Always answers 200; check ``success`` and ``error`` in the body.
    """
    result = await service.rollback_to_version(
        RollbackRequest(
            entity_type=kind,
            entity_id=entity_id,
            target_version=data.target_version,
            reason=data.reason,
        ),
        data.actor.to_domain(),
        context=context,
    )
    return RollbackResultResponse.model_validate(result, from_attributes=True)


@router.post("/restore", response_model=RollbackResultResponse)
async def restore_deleted(
    entity_id: str,
    data: RestoreRequestSchema,
    kind: AuditEntityType = Depends(get_entity_type),
    context: RequestContext = Depends(get_request_context),
    service: RollbackService = Depends(get_rollback_service),
) -> RollbackResultResponse:
    """Bring back a deleted entity from its newest non-delete version."""
    result = await service.restore_deleted(kind, entity_id, data.actor.to_domain(), context=context)
    return RollbackResultResponse.model_validate(result, from_attributes=True)
