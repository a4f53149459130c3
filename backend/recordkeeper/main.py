"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator
from urllib.parse import urlparse

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from recordkeeper.config import Settings, get_settings
from recordkeeper.infrastructure.database import Base, engine
from recordkeeper.infrastructure.logging.log_config import setup_logging
from recordkeeper.presentation.api.v1.router import router as v1_router

logger = logging.getLogger(__name__)


async def _ensure_postgres_database(settings: Settings) -> None:
    """Create the configured PostgreSQL database when it is missing.

    Only PostgreSQL URLs are handled; SQLite creates its file on connect.
    """
    parsed = urlparse(settings.database_url)
    if not parsed.scheme.startswith("postgres"):
        return
    db_name = parsed.path.lstrip("/")
    if not db_name:
        return

    import asyncpg

    maintenance_url = settings.database_url.rsplit("/", 1)[0] + "/postgres"
    try:
        conn = await asyncpg.connect(maintenance_url)
        try:
            exists = await conn.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", db_name)
            if not exists:
                # CREATE DATABASE cannot run inside a transaction block
                await conn.execute(f'CREATE DATABASE "{db_name}"')
                logger.info("Created database '%s'", db_name)
        finally:
            await conn.close()
    except Exception as exc:
        logger.warning("Could not auto-create database '%s': %s", db_name, exc)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan — configure logging, prepare the document store."""
    settings = get_settings()
    setup_logging(settings)

    if settings.document_store_backend == "sql":
        await _ensure_postgres_database(settings)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("SQL document store ready")
    else:
        logger.warning("Using the in-memory document store — history is lost on restart")

    yield

    await engine.dispose()


def create_app() -> FastAPI:
    """Build the API: entity CRUD, history, rollback, and audit log search under /api/v1."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(v1_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("recordkeeper.main:app", host="0.0.0.0", port=8020, reload=True)
