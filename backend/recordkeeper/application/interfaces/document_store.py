"""Abstract document store interface (port) used by the audit engine."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class FieldFilter:
    """Equality filter on a (possibly dotted) field path, e.g. ``changedBy.email``."""

    field: str
    value: Any


@dataclass(frozen=True)
class OrderBy:
    """Sort on a field path. ``numeric`` lets SQL-backed stores order by number, not text."""

    field: str
    descending: bool = False
    numeric: bool = False


class DocumentStore(ABC):
    """Port for schema-less document collections — implemented in the infrastructure layer.

    Collections are addressed by slash-separated paths, so a per-entity
    subcollection such as ``Customers/abc/History`` is just another path.
    Documents returned from reads always carry their ``id``. Each call is
    atomic on its own; there are no multi-document transactions.
    """

    @abstractmethod
    async def get(self, collection: str, document_id: str) -> dict[str, Any] | None:
        """Retrieve one document, or None if it does not exist."""
        ...

    @abstractmethod
    async def put(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        """Create or fully replace a document."""
        ...

    @abstractmethod
    async def update(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        """Merge top-level fields into an existing document.

        Raises:
            DocumentNotFoundError: If the document does not exist.
        """
        ...

    @abstractmethod
    async def delete(self, collection: str, document_id: str) -> bool:
        """Delete a document. Returns True if deleted, False if not found."""
        ...

    @abstractmethod
    async def query(
        self,
        collection: str,
        *,
        filters: list[FieldFilter] | None = None,
        order_by: OrderBy | None = None,
        limit: int | None = None,
        start_after: str | None = None,
    ) -> list[dict[str, Any]]:
        """Run an equality-filtered, ordered query.

        ``start_after`` is the id of a document in the same ordering; results
        begin right after it. An unknown cursor id yields no results.
        """
        ...

    @abstractmethod
    async def append(self, collection: str, data: dict[str, Any]) -> str:
        """Store a new document under a generated id and return that id."""
        ...

    @abstractmethod
    async def count(self, collection: str) -> int:
        """Number of documents in a collection."""
        ...
