"""Domain-specific exceptions — framework-independent."""


class EntityNotFoundError(Exception):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class DocumentNotFoundError(Exception):
    """Raised by a document store when updating a document that does not exist."""

    def __init__(self, collection: str, document_id: str):
        self.collection = collection
        self.document_id = document_id
        super().__init__(f"Document '{document_id}' not found in '{collection}'")


class UnknownEntityTypeError(Exception):
    """Raised for an entity kind the audit engine does not track."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Unknown entity type: {value}")


class HistoryVersionNotFoundError(Exception):
    """Raised when a specific history version of an entity does not exist."""

    def __init__(self, entity_type: str, entity_id: str, version: int):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.version = version
        super().__init__(f"Version {version} of {entity_type} '{entity_id}' not found")


class EntityAlreadyExistsError(Exception):
    """Raised when creating an entity under an id that is already taken."""

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' already exists")
