import threading
import time
from datetime import datetime, timezone

import pytest

from wiki_backend import sessions as sessions_module
from wiki_backend.errors import InternalError
from wiki_backend.sessions import (
    InMemorySessionBackend,
    Role,
    Session,
    SessionStore,
    _ReadWriteLock,
    require_role,
)

pytestmark = pytest.mark.unit


def _session(role: Role) -> Session:
    return Session(token="t", username="u", role=role, created_at=datetime.now(timezone.utc))


def test_issue_lookup_revoke_round_trip():
    store = SessionStore()
    token = store.issue("alice", "editor")

    session = store.lookup(token)
    assert session is not None
    assert session.username == "alice"
    assert session.role is Role.EDITOR
    assert session.token == token

    store.revoke(token)
    assert store.lookup(token) is None


def test_lookup_unknown_tokens_returns_none():
    store = SessionStore()
    assert store.lookup("nope") is None
    assert store.lookup("") is None
    assert store.lookup(None) is None


def test_revoke_is_idempotent():
    store = SessionStore()
    token = store.issue("alice", Role.ADMIN)
    store.revoke(token)
    store.revoke(token)
    store.revoke("never-issued")
    assert store.lookup(token) is None


def test_tokens_are_unique_and_long():
    store = SessionStore()
    tokens = {store.issue("alice", Role.VIEWER) for _ in range(200)}
    assert len(tokens) == 200
    # 32 random bytes, URL-safe base64 without padding.
    assert all(len(t) == 43 for t in tokens)


def test_issue_rejects_unknown_role():
    with pytest.raises(ValueError):
        SessionStore().issue("alice", "superuser")


def test_issue_retries_on_token_collision(monkeypatch):
    store = SessionStore()
    tokens = iter(["A" * 43, "A" * 43, "B" * 43])
    monkeypatch.setattr(sessions_module, "generate_session_token", lambda: next(tokens))

    assert store.issue("alice", Role.EDITOR) == "A" * 43
    assert store.issue("bob", Role.EDITOR) == "B" * 43
    assert store.lookup("A" * 43).username == "alice"


def test_entropy_failure_is_internal_error(monkeypatch):
    def _broken(nbytes):
        raise OSError("no entropy")

    monkeypatch.setattr(sessions_module.secrets, "token_urlsafe", _broken)
    with pytest.raises(InternalError):
        SessionStore().issue("alice", Role.EDITOR)


@pytest.mark.parametrize(
    "role, required, allowed",
    [
        (Role.ADMIN, "admin", True),
        (Role.ADMIN, "editor", True),
        (Role.ADMIN, "viewer", True),
        (Role.EDITOR, "admin", False),
        (Role.EDITOR, "editor", True),
        (Role.EDITOR, "viewer", True),
        (Role.VIEWER, "admin", False),
        (Role.VIEWER, "editor", False),
        (Role.VIEWER, "viewer", True),
    ],
)
def test_role_hierarchy(role, required, allowed):
    assert require_role(_session(role), required) is allowed


def test_require_role_without_session_or_with_unknown_role():
    assert require_role(None, "viewer") is False
    assert require_role(_session(Role.ADMIN), "owner") is False


def test_custom_backend_is_used():
    class RecordingBackend(InMemorySessionBackend):
        def __init__(self):
            super().__init__()
            self.calls = []

        def get(self, token):
            self.calls.append(("get", token))
            return super().get(token)

    backend = RecordingBackend()
    store = SessionStore(backend)
    token = store.issue("alice", Role.EDITOR)
    store.lookup(token)
    assert ("get", token) in backend.calls
    assert len(backend) == 1


def test_concurrent_issue_and_lookup():
    store = SessionStore()
    issued = []
    lock = threading.Lock()
    errors = []

    def worker(n):
        try:
            for i in range(50):
                token = store.issue(f"user{n}", Role.VIEWER)
                assert store.lookup(token).username == f"user{n}"
                with lock:
                    issued.append(token)
                if i % 2:
                    store.revoke(token)
        except Exception as exc:  # pragma: no cover - surfaced below
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert not errors
    assert len(set(issued)) == 400
    assert len(store.backend) == 200


def test_waiting_writer_is_served_before_later_readers():
    lock = _ReadWriteLock()
    order = []

    first_read = lock.read()
    first_read.__enter__()

    def write():
        with lock.write():
            order.append("writer")

    def late_read():
        with lock.read():
            order.append("late-reader")

    writer = threading.Thread(target=write)
    writer.start()
    deadline = time.monotonic() + 5
    while lock._writers_waiting == 0 and time.monotonic() < deadline:
        time.sleep(0.001)
    assert lock._writers_waiting == 1

    reader = threading.Thread(target=late_read)
    reader.start()
    time.sleep(0.05)
    assert order == []

    first_read.__exit__(None, None, None)
    writer.join(timeout=5)
    reader.join(timeout=5)
    assert order == ["writer", "late-reader"]
