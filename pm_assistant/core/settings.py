# settings.py
"""Centralized settings and configuration management."""

import os
from pathlib import Path

from .config import Config

# Pick up a local .env before any setting is read
Config.load_env_for_development()


class Settings:
    """Application settings and configuration"""

    # Base paths
    BASE_DIR = Path(__file__).parent.parent
    DATA_DIR = BASE_DIR / "data"

    # Database
    DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DATA_DIR}/tracker.db")

    # Vector database
    VECTOR_DB_PATH = os.getenv("VECTOR_DB_PATH", str(DATA_DIR / "chroma_db"))
    VECTOR_COLLECTION = os.getenv("VECTOR_COLLECTION", "requirements_defects")

    # Embeddings
    EMBEDDING_PROVIDER = os.getenv("EMBEDDING_PROVIDER", "sentence-transformers")
    EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "all-MiniLM-L6-v2")
    EMBEDDING_DIMENSION = int(os.getenv("EMBEDDING_DIMENSION", "384"))
    OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    OLLAMA_EMBED_MODEL = os.getenv("OLLAMA_EMBED_MODEL", "nomic-embed-text")
    OLLAMA_CHAT_MODEL = os.getenv("OLLAMA_CHAT_MODEL", "deepseek-r1:1.5b")

    # LLM Configuration
    LLM_PROVIDER = os.getenv("LLM_PROVIDER", "groq")
    GROQ_API_KEY = os.getenv("GROQ_API_KEY")
    GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.1-8b-instant")

    # External data sources
    OPENWEATHER_API_KEY = os.getenv("OPENWEATHER_API_KEY")
    OPENWEATHER_BASE_URL = "https://api.openweathermap.org/data/2.5"
    NAMEDAY_WIDGET_URL = os.getenv(
        "NAMEDAY_WIDGET_URL", "https://www.eortologio.net/widget.php"
    )
    HTTP_TIMEOUT = 15  # seconds

    # Application settings
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
    DEBUG = ENVIRONMENT == "development"
    CHAT_RATE_LIMIT = os.getenv("CHAT_RATE_LIMIT", "30/minute")

    # Index sync
    SYNC_DEBOUNCE_SECONDS = float(os.getenv("SYNC_DEBOUNCE_SECONDS", "30"))
    CREATE_SYNC_DELAY_SECONDS = 1.0
    EMBED_BATCH_SIZE = 100
    EMBED_MAX_RETRIES = 5

    # Query execution
    SEARCH_TOP_K = 5
    SUMMARY_SEARCH_LIMIT = 50
    DEFECT_PAGE_SIZE = 100
    RELEASE_SCAN_LIMIT = 25
    MAX_QUERY_CHARS = 100  # Longer queries are truncated before embedding

    @classmethod
    def ensure_directories(cls):
        """Ensure required directories exist"""
        cls.DATA_DIR.mkdir(exist_ok=True)


# Global settings instance
settings = Settings()
settings.ensure_directories()
