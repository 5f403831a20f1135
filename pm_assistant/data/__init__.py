# Data package
"""Data layer for the project assistant."""

from .base_repository import BaseProjectRepository
from .database import DatabaseInitializer, init_database
from .models import DatabaseManager, db_manager
from .sqlalchemy_repository import SQLAlchemyProjectRepository

__all__ = [
    "BaseProjectRepository",
    "SQLAlchemyProjectRepository",
    "DatabaseManager",
    "db_manager",
    "DatabaseInitializer",
    "init_database",
]
