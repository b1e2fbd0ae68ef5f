import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from assist_tracker.adapters.sqlite.migrator import SQLiteMigrator
from assist_tracker.api.deps import get_rules, get_settings
from assist_tracker.app_shell.config import configure_logging, validate_ops_rules

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules and validate on startup (fail-fast)
    try:
        rules = get_rules()
        configure_logging(rules)
        validate_ops_rules(rules)
        logger.info("Rules loaded from %s", settings.rules_path)

        settings.data_dir.mkdir(parents=True, exist_ok=True)
        SQLiteMigrator(settings.db_path, settings.migrations_dir).run_migrations()
    except Exception:
        logger.critical("Startup failed", exc_info=True)
        sys.exit(1)

    yield


app = FastAPI(
    title="Assist Tracker API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from assist_tracker.api.routes import (  # noqa: E402
    calendar,
    medication,
    programs,
    session,
)

app.include_router(session.router, prefix="/api/session", tags=["Session"])
app.include_router(programs.router, prefix="/api/programs", tags=["Programs"])
app.include_router(medication.router, prefix="/api/medication", tags=["Medication"])
app.include_router(calendar.router, prefix="/api/calendar", tags=["Calendar"])


# CORS (Allow Frontend)
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "api"}
