"""Domain-specific exceptions for repository operations.

These exceptions provide clear error handling and better context for database operations.
"""


class RepositoryError(Exception):
    """Base exception for all repository-related errors."""


class EntityAlreadyExistsError(RepositoryError):
    """Raised when an insert hits a uniqueness constraint."""

    def __init__(self, entity_type: str, identifier: str) -> None:
        """Initialize with entity type and identifier."""
        self.entity_type = entity_type
        self.identifier = identifier
        super().__init__(f"{entity_type} with identifier '{identifier}' already exists")


class ValidationError(RepositoryError):
    """Raised when validation fails for an operation."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with validation message and optional field."""
        self.message = message
        self.field = field
        if field:
            super().__init__(f"Validation error on field '{field}': {message}")
        else:
            super().__init__(f"Validation error: {message}")


class DatabaseOperationError(RepositoryError):
    """Raised when a database operation fails."""

    def __init__(self, operation: str, entity_type: str, details: str | None = None) -> None:
        """Initialize with operation details."""
        self.operation = operation
        self.entity_type = entity_type
        self.details = details
        message = f"Failed to {operation} {entity_type}"
        if details:
            message += f": {details}"
        super().__init__(message)
