# database.py
"""Database initialization utilities."""

import logging
from pathlib import Path

from .models import AppSettingModel, DatabaseManager, db_manager

logger = logging.getLogger(__name__)

DEFAULT_APP_SETTINGS = {"weather_location": "Marousi, Athens"}


class DatabaseInitializer:
    """Handles database initialization"""

    def __init__(self, manager: DatabaseManager = None):
        self.manager = manager or db_manager

    def initialize_database(self):
        """Initialize database with tables, indexes and default settings"""
        try:
            logger.info("Initializing database...")
            logger.info(f"Database URL: {self.manager.database_url}")

            # Ensure data directory exists
            if self.manager.database_url.startswith("sqlite:///"):
                db_path = Path(self.manager.database_url.replace("sqlite:///", ""))
                db_path.parent.mkdir(parents=True, exist_ok=True)

            self.manager.create_tables()
            self._seed_default_settings()

            stats = self.manager.get_table_stats()
            logger.info(f"Database initialized successfully: {stats}")
            return True

        except Exception as e:
            logger.error(f"Failed to initialize database: {e}")
            raise

    def _seed_default_settings(self):
        """Insert default app settings that are not present yet"""
        with self.manager.get_session() as session:
            for key, value in DEFAULT_APP_SETTINGS.items():
                if session.get(AppSettingModel, key) is None:
                    session.add(AppSettingModel(key=key, value=value))
            session.commit()

    def get_database_info(self):
        """Get database connection information"""
        try:
            stats = self.manager.get_table_stats()

            return {
                "database_type": "SQLite" if "sqlite" in self.manager.database_url else "Other",
                "connection_status": "Connected",
                "stats": stats,
            }

        except Exception as e:
            return {
                "database_type": "Unknown",
                "connection_status": "Failed",
                "error": str(e),
            }


def init_database(manager: DatabaseManager = None):
    """Convenience function to initialize database"""
    return DatabaseInitializer(manager).initialize_database()
