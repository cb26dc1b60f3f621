import json

import pytest

from wiki_backend.credentials import (
    UserRecord,
    bcrypt_verify,
    hash_password,
    load_users,
    verify_credentials,
)
from wiki_backend.sessions import Role

pytestmark = pytest.mark.unit


def test_bcrypt_round_trip():
    hashed = hash_password("s3cret")
    assert hashed.startswith("$2")
    assert bcrypt_verify("s3cret", hashed)
    assert not bcrypt_verify("wrong", hashed)


def test_bcrypt_verify_tolerates_malformed_hash():
    assert bcrypt_verify("s3cret", "not-a-hash") is False


def test_load_users(tmp_path):
    path = tmp_path / "users.json"
    path.write_text(
        json.dumps(
            [
                {"username": "admin", "password": "$2b$12$x", "role": "admin"},
                {"username": "alice", "password": "$2b$12$y", "role": "Editor"},
            ]
        ),
        encoding="utf-8",
    )
    users = load_users(path)
    assert [u.username for u in users] == ["admin", "alice"]
    assert [u.role for u in users] == [Role.ADMIN, Role.EDITOR]


def test_load_users_missing_file(tmp_path):
    assert load_users(tmp_path / "absent.json") == []
    assert load_users(None) == []


def test_load_users_rejects_unknown_role(tmp_path):
    path = tmp_path / "users.json"
    path.write_text(json.dumps([{"username": "x", "password": "y", "role": "root"}]), encoding="utf-8")
    with pytest.raises(ValueError):
        load_users(path)


def test_verify_credentials_uses_injected_verifier():
    users = [
        UserRecord(username="alice", password_hash="hash-a", role=Role.EDITOR),
        UserRecord(username="victor", password_hash="hash-v", role=Role.VIEWER),
    ]
    seen = []

    def verify(password, stored):
        seen.append((password, stored))
        return password == "pw" and stored == "hash-a"

    assert verify_credentials("alice", "pw", users, verify=verify) is Role.EDITOR
    assert verify_credentials("alice", "bad", users, verify=verify) is None
    assert verify_credentials("nobody", "pw", users, verify=verify) is None
    assert verify_credentials("alice", "", users, verify=verify) is None
    assert ("pw", "hash-a") in seen
