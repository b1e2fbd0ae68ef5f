from assist_tracker.adapters.auth.session_store import InMemorySessionStore


def test_create_and_get():
    store = InMemorySessionStore()
    session = store.create("patient-1")

    assert store.get(session.session_id) == session
    assert session.user_id == "patient-1"


def test_new_login_replaces_previous_session():
    store = InMemorySessionStore()
    first = store.create("patient-1")
    second = store.create("patient-1")

    assert first.session_id != second.session_id
    assert store.get(first.session_id) is None
    assert store.get(second.session_id) == second


def test_sessions_are_per_user():
    store = InMemorySessionStore()
    a = store.create("a")
    b = store.create("b")

    assert store.delete_by_user("a") == [a]
    assert store.get(a.session_id) is None
    assert store.get(b.session_id) == b


def test_delete_returns_session():
    store = InMemorySessionStore()
    session = store.create("patient-1")

    assert store.delete(session.session_id) == session
    assert store.delete(session.session_id) is None


def test_unknown_session():
    assert InMemorySessionStore().get("missing") is None
