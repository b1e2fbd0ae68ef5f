"""In-memory session store adapter.

Holds one SessionState per login. Suitable for single-process deployments,
which matches the one-active-session-per-patient model.
"""

from assist_tracker.domain.entities import SessionState


class InMemorySessionStore:
    def __init__(self) -> None:
        self._sessions: dict[str, SessionState] = {}

    def create(self, user_id: str) -> SessionState:
        """Start a session, replacing any the user already had."""
        self.delete_by_user(user_id)
        session = SessionState(user_id=user_id)
        self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> SessionState | None:
        return self._sessions.get(session_id)

    def delete(self, session_id: str) -> SessionState | None:
        return self._sessions.pop(session_id, None)

    def delete_by_user(self, user_id: str) -> list[SessionState]:
        """Delete all sessions for a user. Returns the sessions removed."""
        removed = [s for s in self._sessions.values() if s.user_id == user_id]
        for session in removed:
            del self._sessions[session.session_id]
        return removed

    def clear(self) -> None:
        """Clear all sessions - useful for testing."""
        self._sessions.clear()
