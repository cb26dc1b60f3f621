"""User records and password verification."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

import bcrypt

from .sessions import Role


logger = logging.getLogger(__name__)

VerifyFunc = Callable[[str, str], bool]


@dataclass(frozen=True)
class UserRecord:
    username: str
    password_hash: str
    role: Role


def hash_password(plain_password: str) -> str:
    """Hash a plaintext password using bcrypt."""
    return bcrypt.hashpw(plain_password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def bcrypt_verify(plain_password: str, hashed_password: str) -> bool:
    """Validate a plaintext password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed hash in the users file.
        return False


def load_users(path: Path | None) -> list[UserRecord]:
    if path is None or not path.exists():
        return []
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"{path} must contain a list of users")

    users: list[UserRecord] = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise ValueError(f"{path}: user entries must be objects")
        role = Role.parse(entry.get("role"))
        if role is None:
            raise ValueError(f"{path}: unknown role {entry.get('role')!r} for {entry.get('username')!r}")
        users.append(
            UserRecord(
                username=str(entry.get("username") or ""),
                password_hash=str(entry.get("password") or ""),
                role=role,
            )
        )
    logger.info("Loaded %d user(s) from %s", len(users), path)
    return users


def verify_credentials(
    username: str,
    password: str,
    users: Iterable[UserRecord],
    verify: VerifyFunc = bcrypt_verify,
) -> Role | None:
    """Return the user's role when the credentials match, else None."""
    if not username or not password:
        return None
    for user in users:
        if user.username == username and verify(password, user.password_hash):
            return user.role
    return None
