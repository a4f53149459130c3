"""Process-local document store.

Keeps every collection in a dict keyed by document id, preserving insertion
order. Documents are deep-copied on the way in and out so callers can never
mutate stored state, which keeps history entries immutable in practice.

Used by the unit tests and by the ``memory`` backend setting. Nothing is
persisted across restarts.
"""

import copy
from typing import Any
from uuid import uuid4

from recordkeeper.application.interfaces import DocumentStore, FieldFilter, OrderBy
from recordkeeper.domain.exceptions import DocumentNotFoundError
from recordkeeper.infrastructure.document_query import evaluate


class InMemoryDocumentStore(DocumentStore):
    """Implements the DocumentStore port with plain dictionaries."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    def _collection(self, path: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(path, {})

    @staticmethod
    def _with_id(document_id: str, data: dict[str, Any]) -> dict[str, Any]:
        doc = copy.deepcopy(data)
        doc["id"] = document_id
        return doc

    async def get(self, collection: str, document_id: str) -> dict[str, Any] | None:
        data = self._collections.get(collection, {}).get(document_id)
        return self._with_id(document_id, data) if data is not None else None

    async def put(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        self._collection(collection)[document_id] = copy.deepcopy(data)

    async def update(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        existing = self._collections.get(collection, {}).get(document_id)
        if existing is None:
            raise DocumentNotFoundError(collection, document_id)
        existing.update(copy.deepcopy(data))

    async def delete(self, collection: str, document_id: str) -> bool:
        docs = self._collections.get(collection, {})
        if document_id not in docs:
            return False
        del docs[document_id]
        return True

    async def query(
        self,
        collection: str,
        *,
        filters: list[FieldFilter] | None = None,
        order_by: OrderBy | None = None,
        limit: int | None = None,
        start_after: str | None = None,
    ) -> list[dict[str, Any]]:
        documents = [
            self._with_id(doc_id, data)
            for doc_id, data in self._collections.get(collection, {}).items()
        ]
        return evaluate(
            documents,
            filters=filters,
            order_by=order_by,
            limit=limit,
            start_after=start_after,
        )

    async def append(self, collection: str, data: dict[str, Any]) -> str:
        document_id = str(uuid4())
        self._collection(collection)[document_id] = copy.deepcopy(data)
        return document_id

    async def count(self, collection: str) -> int:
        return len(self._collections.get(collection, {}))
