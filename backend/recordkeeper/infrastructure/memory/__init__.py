from .document_store import InMemoryDocumentStore

__all__ = ["InMemoryDocumentStore"]
