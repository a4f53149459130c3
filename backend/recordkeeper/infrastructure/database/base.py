"""Declarative base shared by the document store tables."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Metadata registry; ``Base.metadata.create_all`` builds the schema at startup."""
