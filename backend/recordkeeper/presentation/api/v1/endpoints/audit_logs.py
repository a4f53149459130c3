"""Cross-entity audit log search (admin view)."""

from fastapi import APIRouter, Depends, Query

from recordkeeper.config import get_settings
from recordkeeper.application.schemas import AuditLogEntryResponse
from recordkeeper.application.services import HistoryReader
from recordkeeper.domain.entities import AuditEntityType, AuditLogFilter, AuditOperation
from recordkeeper.infrastructure.dependencies import get_history_reader

router = APIRouter(prefix="/audit-logs", tags=["Audit Logs"])


@router.get("", response_model=list[AuditLogEntryResponse])
async def search_audit_logs(
    entity_type: AuditEntityType | None = Query(None, description="Filter by entity kind"),
    entity_id: str | None = Query(None, description="Filter by entity ID"),
    operation: AuditOperation | None = Query(None, description="Filter by operation"),
    changed_by_uid: str | None = Query(None, description="Filter by actor uid"),
    changed_by_email: str | None = Query(None, description="Filter by actor email"),
    start_date: str | None = Query(None, description="ISO 8601 lower bound (inclusive)"),
    end_date: str | None = Query(None, description="ISO 8601 upper bound (inclusive)"),
    limit: int | None = Query(None, ge=1, le=1000, description="Defaults to AUDIT_SEARCH_LIMIT"),
    reader: HistoryReader = Depends(get_history_reader),
) -> list[AuditLogEntryResponse]:
    """Search the audit ledger across all entities, newest first."""
    entries = await reader.search_audit_logs(
        AuditLogFilter(
            entity_type=entity_type,
            entity_id=entity_id,
            operation=operation,
            changed_by_uid=changed_by_uid,
            changed_by_email=changed_by_email,
            start_date=start_date,
            end_date=end_date,
            limit=limit or get_settings().audit_search_limit,
        )
    )
    return [AuditLogEntryResponse.model_validate(e, from_attributes=True) for e in entries]
