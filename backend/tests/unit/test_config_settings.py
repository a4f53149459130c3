"""Unit tests for application settings configuration."""

import logging
from pathlib import Path

from recordkeeper.config import Settings
from recordkeeper.infrastructure.logging.log_config import setup_logging


def test_settings_uses_backend_env_file_independent_of_cwd():
    """Settings should always include backend/.env as an env source."""
    env_files = Settings.model_config.get("env_file")
    assert env_files is not None

    normalized = {str(Path(item)) for item in env_files}
    expected_backend_env = str(Path(__file__).resolve().parents[2] / ".env")

    assert expected_backend_env in normalized
    assert str(Path(".env")) in normalized


def test_document_store_backend_from_environment(monkeypatch):
    monkeypatch.setenv("DOCUMENT_STORE_BACKEND", "memory")
    monkeypatch.setenv("HISTORY_PAGE_SIZE", "20")

    settings = Settings(_env_file=None)

    assert settings.document_store_backend == "memory"
    assert settings.history_page_size == 20


def test_memory_backend_outside_development_warns(caplog):
    with caplog.at_level(logging.WARNING, logger="recordkeeper.config"):
        Settings(_env_file=None, document_store_backend="memory", app_env="production")

    assert "In-memory document store" in caplog.text


def test_setup_logging_applies_category_levels():
    setup_logging(Settings(_env_file=None, log_level_sql="error", log_level_audit="DEBUG", log_level_uvicorn="bogus"))

    assert logging.getLogger("sqlalchemy.engine").level == logging.ERROR
    assert logging.getLogger("recordkeeper.application.services").level == logging.DEBUG
    assert logging.getLogger("uvicorn.access").level == logging.INFO
