import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI

from duplicate_post.adapters.sqlite.migrator import SQLiteMigrator
from duplicate_post.api.deps import get_settings
from duplicate_post.app_shell.config import validate_ops_rules
from duplicate_post.rules.loader import load_rules

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules and validate on startup (fail-fast)
    rules = load_rules(settings.rules_path)
    validate_ops_rules(rules, settings.base_dir)
    logger.info("Rules loaded from %s", settings.rules_path)

    Path(settings.db_path).parent.mkdir(parents=True, exist_ok=True)
    SQLiteMigrator(settings.db_path, settings.migrations_dir).run_migrations()

    yield


app = FastAPI(
    title="Duplicate Post",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from duplicate_post.api.routes import admin  # noqa: E402

app.include_router(admin.router, prefix="/wp-admin", tags=["Admin"])


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "duplicate-post"}
