"""Query evaluation shared by the document store adapters.

Semantics follow a typical document database: a filter or ordering on a
field the document lacks excludes the document; mixed value types order as
null < bool < number < string < everything else; ties order by document id
in the same direction.
"""

import json
from typing import Any

from recordkeeper.application.interfaces import FieldFilter, OrderBy
from recordkeeper.domain.diff import deep_equal

_MISSING = object()


def resolve_path(document: dict[str, Any], path: str) -> Any:
    """Follow a dotted path into nested mappings. Returns _MISSING if absent."""
    current: Any = document
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def matches(document: dict[str, Any], filters: list[FieldFilter]) -> bool:
    for flt in filters:
        value = resolve_path(document, flt.field)
        if value is _MISSING or not deep_equal(value, flt.value):
            return False
    return True


def _sort_key(value: Any) -> tuple[int, Any]:
    if value is None:
        return (0, 0)
    if isinstance(value, bool):
        return (1, value)
    if isinstance(value, (int, float)):
        return (2, value)
    if isinstance(value, str):
        return (3, value)
    return (4, json.dumps(value, sort_keys=True, default=str))


def evaluate(
    documents: list[dict[str, Any]],
    *,
    filters: list[FieldFilter] | None = None,
    order_by: OrderBy | None = None,
    limit: int | None = None,
    start_after: str | None = None,
) -> list[dict[str, Any]]:
    """Apply filters, ordering, cursor and limit to a list of documents.

    Documents must already carry their ``id``. Input order is kept when no
    ordering is requested.

    The cursor is positional: results start after the cursor document's
    place in the ordering, even if the filters exclude the cursor itself.
    """
    positions = {doc["id"]: index for index, doc in enumerate(documents)}

    def position(doc: dict[str, Any]) -> tuple:
        if order_by is None:
            return (positions[doc["id"]],)
        return (_sort_key(resolve_path(doc, order_by.field)), doc["id"])

    results = [doc for doc in documents if matches(doc, filters or [])]

    if order_by is not None:
        results = [doc for doc in results if resolve_path(doc, order_by.field) is not _MISSING]
        results.sort(key=position, reverse=order_by.descending)

    if start_after is not None:
        cursor = next((doc for doc in documents if doc["id"] == start_after), None)
        if cursor is None:
            return []
        if order_by is not None and resolve_path(cursor, order_by.field) is _MISSING:
            return []
        cursor_position = position(cursor)
        if order_by is not None and order_by.descending:
            results = [doc for doc in results if position(doc) < cursor_position]
        else:
            results = [doc for doc in results if position(doc) > cursor_position]

    if limit is not None:
        results = results[:limit]

    return results
