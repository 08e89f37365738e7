"""
Shared database models, session management and repositories (PostgreSQL).

Import Organization:
- Models: SQLAlchemy declarative schema used by Alembic and the repositories
- Session Management: async engine and the ``get_db`` FastAPI dependency
- Repositories: category, attribute, asset and attachment persistence
"""

from .database import get_db
from .exceptions import (
    DatabaseOperationError,
    EntityAlreadyExistsError,
    RepositoryError,
    ValidationError,
)
from .postgres_database import (
    PostgresConnectionManager,
    check_postgres_connection,
    get_postgres_db,
    pg_connection_manager,
)
from .repositories import (
    AssetRepository,
    AttachmentRepository,
    AttributeAssignment,
    AttributeRepository,
    CategoryRepository,
)

__all__ = [
    # Session management
    "PostgresConnectionManager",
    "check_postgres_connection",
    "get_db",
    "get_postgres_db",
    "pg_connection_manager",
    # Exceptions
    "DatabaseOperationError",
    "EntityAlreadyExistsError",
    "RepositoryError",
    "ValidationError",
    # Repositories
    "AssetRepository",
    "AttachmentRepository",
    "AttributeAssignment",
    "AttributeRepository",
    "CategoryRepository",
]
