"""Session routes: start and end a patient's session.

Credential checks happen upstream; these routes only manage SessionState.
"""

from fastapi import APIRouter, Depends, Response

from assist_tracker.adapters.auth.session_store import InMemorySessionStore
from assist_tracker.api.deps import (
    SESSION_COOKIE,
    get_current_session,
    get_enrollment_service,
    get_session_store,
)
from assist_tracker.api.schemas import SessionCreateRequest, SessionResponse
from assist_tracker.components.enrollment import EnrollmentService
from assist_tracker.domain.entities import SessionState

router = APIRouter()


@router.post("", response_model=SessionResponse, status_code=201)
def login(
    data: SessionCreateRequest,
    response: Response,
    store: InMemorySessionStore = Depends(get_session_store),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> SessionResponse:
    # A new login replaces the user's earlier sessions and their cached data.
    for replaced in store.delete_by_user(data.user_id):
        service.discard(replaced)
    session = store.create(data.user_id)
    response.set_cookie(SESSION_COOKIE, session.session_id, httponly=True, samesite="lax")
    return SessionResponse(
        session_id=session.session_id,
        user_id=session.user_id,
        started_at=session.started_at,
    )


@router.delete("", status_code=204)
def logout(
    response: Response,
    session: SessionState = Depends(get_current_session),
    store: InMemorySessionStore = Depends(get_session_store),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> None:
    service.discard(session)
    store.delete(session.session_id)
    response.delete_cookie(SESSION_COOKIE)
