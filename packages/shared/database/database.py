"""
Async database session dependency.
"""

from .postgres_database import get_postgres_db

# Routers depend on get_db so tests can override a single symbol.
get_db = get_postgres_db

__all__ = ["get_db"]
