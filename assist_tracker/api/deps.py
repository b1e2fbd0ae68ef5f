import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from assist_tracker.adapters.auth.session_store import InMemorySessionStore
from assist_tracker.adapters.clock import SystemClock
from assist_tracker.adapters.sqlite.repos import (
    SQLiteDrugCatalogRepo,
    SQLiteEnrollmentRepo,
    SQLitePatientDrugRepo,
    SQLiteProgramRepo,
)
from assist_tracker.app_shell.config import enrollment_config
from assist_tracker.components.enrollment import EnrollmentService
from assist_tracker.domain.entities import SessionState
from assist_tracker.ports.clock import ClockPort
from assist_tracker.rules.loader import load_rules
from assist_tracker.rules.models import Rules

SESSION_COOKIE = "session_id"


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("ASSIST_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "assist.db")
        self.rules_path = Path(os.environ.get("ASSIST_RULES_PATH", self.base_dir / "rules.yaml"))
        self.migrations_dir = str(self.base_dir / "migrations")


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> Rules:
    return load_rules(get_settings().rules_path)


# --- Repos ---
def get_drug_catalog(settings: Settings = Depends(get_settings)) -> SQLiteDrugCatalogRepo:
    return SQLiteDrugCatalogRepo(settings.db_path)


# --- Clock ---
@lru_cache
def get_clock() -> ClockPort:
    return SystemClock()


# --- Services ---
# Both hold per-session state, so one instance serves the whole process.
@lru_cache
def get_session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@lru_cache
def get_enrollment_service() -> EnrollmentService:
    db_path = get_settings().db_path
    return EnrollmentService(
        programs=SQLiteProgramRepo(db_path),
        enrollments=SQLiteEnrollmentRepo(db_path),
        drugs=SQLitePatientDrugRepo(db_path),
        clock=get_clock(),
        config=enrollment_config(get_rules()),
    )


# --- Session ---
def get_current_session(
    request: Request,
    x_session_id: Annotated[str | None, Header()] = None,
    store: InMemorySessionStore = Depends(get_session_store),
) -> SessionState:
    # Cookie first, then header
    session_id = request.cookies.get(SESSION_COOKIE) or x_session_id
    if not session_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    session = store.get(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired",
        )
    return session
