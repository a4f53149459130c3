"""FastAPI dependency injection — wires infrastructure to application layer."""

from collections.abc import AsyncGenerator
from functools import lru_cache

from fastapi import Depends, HTTPException, Request, status

from recordkeeper.config import get_settings
from recordkeeper.application.interfaces import DocumentStore
from recordkeeper.application.services import (
    EntityRecordService,
    HistoryReader,
    HistoryRecorder,
    RollbackService,
    VersionAllocator,
)
from recordkeeper.domain.entities import AuditEntityType, RequestContext
from recordkeeper.domain.exceptions import UnknownEntityTypeError
from recordkeeper.infrastructure.database.session import session_scope
from recordkeeper.infrastructure.database.repositories import SQLAlchemyDocumentStore
from recordkeeper.infrastructure.memory import InMemoryDocumentStore


@lru_cache
def get_memory_document_store() -> InMemoryDocumentStore:
    """Process-wide in-memory store for the ``memory`` backend."""
    return InMemoryDocumentStore()


async def get_document_store() -> AsyncGenerator[DocumentStore, None]:
    """Provides the configured DocumentStore.

    The SQL backend works on one session per request, committed when the
    request succeeds and rolled back otherwise. The memory backend opens no
    session.
    """
    if get_settings().document_store_backend == "memory":
        yield get_memory_document_store()
        return
    async with session_scope() as session:
        yield SQLAlchemyDocumentStore(session)


def get_entity_type(entity_type: str) -> AuditEntityType:
    """Path parameter parser — unknown kinds are reported as 404."""
    try:
        return AuditEntityType.parse(entity_type)
    except UnknownEntityTypeError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def get_request_context(request: Request) -> RequestContext:
    """Request metadata copied onto audit ledger entries."""
    return RequestContext(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        session_id=request.headers.get("x-session-id"),
    )


async def get_history_reader(
    store: DocumentStore = Depends(get_document_store),
) -> AsyncGenerator[HistoryReader, None]:
    """Provides a HistoryReader bound to the request's store."""
    yield HistoryReader(store)


async def get_history_recorder(
    store: DocumentStore = Depends(get_document_store),
) -> AsyncGenerator[HistoryRecorder, None]:
    """Provides a HistoryRecorder with its version allocator wired up."""
    yield HistoryRecorder(store, VersionAllocator(store))


async def get_rollback_service(
    store: DocumentStore = Depends(get_document_store),
    reader: HistoryReader = Depends(get_history_reader),
    recorder: HistoryRecorder = Depends(get_history_recorder),
) -> AsyncGenerator[RollbackService, None]:
    """Provides a RollbackService sharing the request's store."""
    yield RollbackService(store, reader, recorder)


async def get_entity_record_service(
    store: DocumentStore = Depends(get_document_store),
    recorder: HistoryRecorder = Depends(get_history_recorder),
) -> AsyncGenerator[EntityRecordService, None]:
    """Provides an EntityRecordService with history recording wired up."""
    yield EntityRecordService(store, recorder)
