"""In-memory session store.

Tokens are capability strings: anyone holding one acts as its user, so they
are drawn from the OS CSPRNG (256 bits) and never logged.
"""
from __future__ import annotations

import logging
import secrets
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Iterator, Protocol

from .errors import InternalError


logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


class Role(str, Enum):
    VIEWER = "viewer"
    EDITOR = "editor"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return _ROLE_RANK[self]

    def satisfies(self, required: "Role") -> bool:
        return self.rank >= required.rank

    @classmethod
    def parse(cls, value: "str | Role | None") -> "Role | None":
        if isinstance(value, Role):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


_ROLE_RANK = {Role.VIEWER: 0, Role.EDITOR: 1, Role.ADMIN: 2}


@dataclass(frozen=True)
class Session:
    token: str
    username: str
    role: Role
    created_at: datetime


class SessionBackend(Protocol):
    """Key-value storage for sessions; swap for a persistent or shared one."""

    def get(self, token: str) -> Session | None: ...

    def put(self, session: Session) -> bool: ...

    def delete(self, token: str) -> None: ...


class _ReadWriteLock:
    """Many concurrent readers or one writer; waiting writers go first."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class InMemorySessionBackend:
    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = _ReadWriteLock()

    def get(self, token: str) -> Session | None:
        with self._lock.read():
            return self._sessions.get(token)

    def put(self, session: Session) -> bool:
        """Store a new session; False if the token is already taken."""
        with self._lock.write():
            if session.token in self._sessions:
                return False
            self._sessions[session.token] = session
            return True

    def delete(self, token: str) -> None:
        with self._lock.write():
            self._sessions.pop(token, None)

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._sessions)


def generate_session_token() -> str:
    try:
        return secrets.token_urlsafe(TOKEN_BYTES)
    except (OSError, NotImplementedError) as exc:
        logger.error("Entropy source unavailable: %s", exc)
        raise InternalError("Could not generate session token") from exc


class SessionStore:
    def __init__(self, backend: SessionBackend | None = None) -> None:
        self.backend: SessionBackend = backend if backend is not None else InMemorySessionBackend()

    def issue(self, username: str, role: Role | str) -> str:
        parsed = Role.parse(role)
        if parsed is None:
            raise ValueError(f"Unknown role: {role!r}")
        while True:
            token = generate_session_token()
            session = Session(
                token=token,
                username=username,
                role=parsed,
                created_at=datetime.now(timezone.utc),
            )
            if self.backend.put(session):
                break
        logger.info("Session issued for %s (%s)", username, parsed.value)
        return token

    def lookup(self, token: str | None) -> Session | None:
        if not token:
            return None
        return self.backend.get(token)

    def revoke(self, token: str | None) -> None:
        if not token:
            return
        self.backend.delete(token)


def require_role(session: Session | None, required_role: Role | str) -> bool:
    """True iff the session exists and its role is at least required_role."""
    if session is None:
        return False
    required = Role.parse(required_role)
    if required is None:
        return False
    return session.role.satisfies(required)
