from .document_store import DocumentStore, FieldFilter, OrderBy

__all__ = [
    "DocumentStore",
    "FieldFilter",
    "OrderBy",
]
