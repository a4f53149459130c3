"""Logging setup for the record keeper.

Every module logs through ``logging.getLogger(__name__)``. This module only
decides levels: one for the root logger and one per category, so SQL echo
or access logs can be turned down while history recording and rollbacks
stay visible.

Call ``setup_logging()`` once, from the FastAPI lifespan.
"""

import logging
import sys

from recordkeeper.config import Settings, get_settings

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s — %(message)s"

# Settings field → logger names it governs
_CATEGORY_MAP: dict[str, tuple[str, ...]] = {
    "log_level_sql": ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite"),
    "log_level_uvicorn": ("uvicorn", "uvicorn.access", "uvicorn.error"),
    "log_level_audit": ("recordkeeper.application.services",),
}


def setup_logging(settings: Settings | None = None) -> None:
    """Apply root and per-category log levels from settings."""
    settings = settings or get_settings()

    root = logging.getLogger()
    root.setLevel(_parse_level(settings.log_level))
    if not root.handlers:
        # Running outside uvicorn (scripts, tests)
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)

    levels = {field: getattr(settings, field) for field in _CATEGORY_MAP}
    for field, logger_names in _CATEGORY_MAP.items():
        for name in logger_names:
            logging.getLogger(name).setLevel(_parse_level(levels[field]))

    logging.getLogger(__name__).debug(
        "Log levels: root=%s %s",
        settings.log_level,
        " ".join(f"{field.removeprefix('log_level_')}={level}" for field, level in levels.items()),
    )


def _parse_level(raw: str) -> int:
    """Level name to logging constant; unknown names fall back to INFO."""
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else logging.INFO
