import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from server import create_app
from wiki_backend.config import WikiSettings
from wiki_backend.credentials import UserRecord
from wiki_backend.layout import WikiLayout
from wiki_backend.sessions import Role, SessionStore


def _plain_verify(password: str, stored: str) -> bool:
    return password == stored


@pytest.fixture
def settings(tmp_path):
    return WikiSettings(wiki_root=tmp_path, allow_insecure_cookies=True)


@pytest.fixture
def layout(settings):
    layout = WikiLayout.from_settings(settings)
    layout.ensure_dirs()
    return layout


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def users():
    return [
        UserRecord(username="admin", password_hash="admin-pw", role=Role.ADMIN),
        UserRecord(username="alice", password_hash="alice-pw", role=Role.EDITOR),
        UserRecord(username="victor", password_hash="victor-pw", role=Role.VIEWER),
    ]


@pytest.fixture
def app(settings, store, users):
    return create_app(settings=settings, store=store, users=users, verify=_plain_verify)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


def login(client: TestClient, username: str, password: str):
    resp = client.post("/api/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return resp


@pytest.fixture
def editor_client(client):
    login(client, "alice", "alice-pw")
    return client


def make_document(layout: WikiLayout, rel_path: str, text: str = "# doc\n") -> Path:
    node = layout.node_dir(rel_path)
    node.mkdir(parents=True, exist_ok=True)
    (node / "document.md").write_text(text, encoding="utf-8")
    return node


def make_history(layout: WikiLayout, rel_path: str) -> Path:
    versions = layout.versions_dir(rel_path)
    versions.mkdir(parents=True, exist_ok=True)
    (versions / "20240101120000.md").write_text("old\n", encoding="utf-8")
    comments = layout.comments_dir(rel_path)
    comments.mkdir(parents=True, exist_ok=True)
    (comments / "1.json").write_text("{}", encoding="utf-8")
    return versions
