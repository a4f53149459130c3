from .base import Base
from .session import engine, async_session_factory, session_scope
from .models import DocumentModel

__all__ = [
    "Base",
    "engine",
    "async_session_factory",
    "session_scope",
    "DocumentModel",
]
