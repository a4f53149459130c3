import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings

_config_logger = logging.getLogger(__name__)

_BACKEND_DIR = Path(__file__).resolve().parents[1]
_ENV_FILES = (
    _BACKEND_DIR / ".env",
    ".env",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_title: str = "Record Keeper API"
    app_version: str = "0.1.0"
    app_env: str = "development"
    database_url: str = "sqlite:///./recordkeeper.db"
    cors_origins: list[str] = ["http://localhost:5173"]

    # Where live entities, history streams and the audit ledger are kept:
    # "sql" (SQLAlchemy, database_url) or "memory" (process-local, non-durable)
    document_store_backend: Literal["sql", "memory"] = "sql"

    # Default page sizes for history reads
    history_page_size: int = 50
    audit_search_limit: int = 100

    # Logging — per-category log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = "INFO"                  # Root / app-wide
    log_level_sql: str = "WARNING"           # sqlalchemy.engine — SQL queries
    log_level_uvicorn: str = "INFO"          # uvicorn.access / uvicorn.error
    log_level_audit: str = "INFO"            # history recorder / rollback engine

    model_config = {
        "env_file": _ENV_FILES,
        "env_file_encoding": "utf-8",
    }

    def model_post_init(self, __context: object) -> None:
        """Warn when the non-durable backend is selected outside development."""
        if self.document_store_backend == "memory" and self.app_env != "development":
            _config_logger.warning(
                "In-memory document store selected in %s — audit history will not survive a restart",
                self.app_env,
            )


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance — reads .env once."""
    return Settings()
