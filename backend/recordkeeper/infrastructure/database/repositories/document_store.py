"""Concrete DocumentStore implementation backed by SQLAlchemy."""

from typing import Any
from uuid import uuid4

from sqlalchemy import Float, cast, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from recordkeeper.application.interfaces import DocumentStore, FieldFilter, OrderBy
from recordkeeper.domain.exceptions import DocumentNotFoundError
from recordkeeper.infrastructure.database.models import DocumentModel
from recordkeeper.infrastructure.document_query import evaluate


class SQLAlchemyDocumentStore(DocumentStore):
    """Implements the DocumentStore port on a single JSON 'documents' table.

    Collection scoping, string and numeric equality filters, ordering and
    the limit run in SQL against JSON paths of ``data``. The fetched rows are
    re-checked in Python with the shared evaluator, which also resolves
    cursors; a cursor query reads every row that passes the SQL filters.
    Every write runs in its own SAVEPOINT so a failed write leaves the rest
    of the session usable.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    @staticmethod
    def _to_document(model: DocumentModel) -> dict[str, Any]:
        """Map ORM model → document dict (with id)."""
        return {**model.data, "id": model.document_id}

    @staticmethod
    def _strip_id(data: dict[str, Any], document_id: str) -> dict[str, Any]:
        stored = dict(data)
        if stored.get("id") == document_id:
            stored.pop("id")
        return stored

    async def _get_model(self, collection: str, document_id: str) -> DocumentModel | None:
        stmt = select(DocumentModel).where(
            DocumentModel.collection == collection,
            DocumentModel.document_id == document_id,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get(self, collection: str, document_id: str) -> dict[str, Any] | None:
        model = await self._get_model(collection, document_id)
        return self._to_document(model) if model else None

    async def put(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        async with self._session.begin_nested():
            model = await self._get_model(collection, document_id)
            if model is None:
                self._session.add(
                    DocumentModel(
                        collection=collection,
                        document_id=document_id,
                        data=self._strip_id(data, document_id),
                    )
                )
            else:
                model.data = self._strip_id(data, document_id)
            await self._session.flush()

    async def update(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        async with self._session.begin_nested():
            model = await self._get_model(collection, document_id)
            if model is None:
                raise DocumentNotFoundError(collection, document_id)
            # Reassign so the JSON column is marked dirty
            model.data = {**model.data, **self._strip_id(data, document_id)}
            await self._session.flush()

    async def delete(self, collection: str, document_id: str) -> bool:
        async with self._session.begin_nested():
            model = await self._get_model(collection, document_id)
            if model is None:
                return False
            await self._session.delete(model)
            await self._session.flush()
            return True

    def _field(self, path: str):
        """JSON path element for a dotted field, e.g. ``changedBy.email``."""
        parts = path.split(".")
        return DocumentModel.data[parts[0] if len(parts) == 1 else tuple(parts)]

    def _filter_clause(self, flt: FieldFilter):
        """SQL equality for strings and numbers; None for values left to Python."""
        if isinstance(flt.value, bool):
            return None
        if isinstance(flt.value, str):
            return self._field(flt.field).as_string() == flt.value
        if isinstance(flt.value, (int, float)):
            return cast(self._field(flt.field).as_string(), Float) == float(flt.value)
        return None

    def _order_clauses(self, order_by: OrderBy):
        value = self._field(order_by.field).as_string()
        if order_by.numeric:
            value = cast(value, Float)
        if order_by.descending:
            return value, [value.desc(), DocumentModel.document_id.desc()]
        return value, [value.asc(), DocumentModel.document_id.asc()]

    async def query(
        self,
        collection: str,
        *,
        filters: list[FieldFilter] | None = None,
        order_by: OrderBy | None = None,
        limit: int | None = None,
        start_after: str | None = None,
    ) -> list[dict[str, Any]]:
        stmt = select(DocumentModel).where(DocumentModel.collection == collection)
        for flt in filters or []:
            clause = self._filter_clause(flt)
            if clause is not None:
                stmt = stmt.where(clause)

        if order_by is not None:
            value, ordering = self._order_clauses(order_by)
            stmt = stmt.where(value.is_not(None)).order_by(*ordering)
        else:
            stmt = stmt.order_by(DocumentModel.seq)

        if limit is not None and start_after is None:
            stmt = stmt.limit(limit)

        result = await self._session.execute(stmt)
        documents = [self._to_document(row) for row in result.scalars().all()]

        if start_after is not None and all(doc["id"] != start_after for doc in documents):
            # The cursor sets a position even when the filters exclude it
            cursor = await self._get_model(collection, start_after)
            if cursor is not None:
                documents.append(self._to_document(cursor))

        # SQL narrows the rows; exact matching, ordering and the cursor stay in Python
        return evaluate(
            documents,
            filters=filters,
            order_by=order_by,
            limit=limit,
            start_after=start_after,
        )

    async def append(self, collection: str, data: dict[str, Any]) -> str:
        document_id = str(uuid4())
        async with self._session.begin_nested():
            self._session.add(
                DocumentModel(
                    collection=collection,
                    document_id=document_id,
                    data=dict(data),
                )
            )
            await self._session.flush()
        return document_id

    async def count(self, collection: str) -> int:
        stmt = select(func.count()).select_from(DocumentModel).where(
            DocumentModel.collection == collection
        )
        result = await self._session.execute(stmt)
        return int(result.scalar_one())
