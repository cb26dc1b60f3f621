from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# Root directory of the wiki (documents/, versions/, comments/ live under it).
# Default: project-local ./data. Override with env var WIKI_ROOT.
_root_raw = os.environ.get("WIKI_ROOT")
if _root_raw and _root_raw.strip():
    WIKI_ROOT = Path(_root_raw)
else:
    # wiki_backend/ -> project root
    WIKI_ROOT = Path(__file__).resolve().parent.parent / "data"

# Primary content tree, relative to WIKI_ROOT.
DOCUMENTS_DIR = os.environ.get("WIKI_DOCUMENTS_DIR", "documents")

# Secondary stores, path-aligned with the primary tree.
VERSIONS_DIRNAME = "versions"
COMMENTS_DIRNAME = "comments"

# Markers for relocations that have not finished mirroring.
JOURNAL_DIRNAME = ".relocations"

DOCUMENT_FILENAME = "document.md"

# The home page lives at a fixed path and can never be relocated.
HOME_PATH = "pages/home"
HOMEPAGE_SEGMENT = "homepage"
# Revision history of documents is kept under this prefix.
DOCUMENTS_VERSIONS_PREFIX = "documents"

# JSON file holding [{"username": ..., "password": <bcrypt hash>, "role": ...}].
_users_raw = os.environ.get("WIKI_USERS_FILE")
USERS_FILE = Path(_users_raw) if _users_raw and _users_raw.strip() else WIKI_ROOT / "users.json"

# Private wikis require a session for every request.
PRIVATE = _env_flag("WIKI_PRIVATE")

# Session cookies.
SESSION_COOKIE_NAME = "session_token"
USER_COOKIE_NAME = "session_user"
SESSION_MAX_AGE_SECONDS = int(os.environ.get("SESSION_MAX_AGE_SECONDS", str(24 * 3600)))  # 24h
REMEMBER_ME_MAX_AGE_SECONDS = int(os.environ.get("REMEMBER_ME_MAX_AGE_SECONDS", str(30 * 24 * 3600)))  # 30d

# Local/testing deployments over plain HTTP need non-secure cookies.
ALLOW_INSECURE_COOKIES = _env_flag("ALLOW_INSECURE_COOKIES")

# Fall back to copy-then-delete when a rename crosses filesystems.
ALLOW_CROSS_DEVICE_MOVE = _env_flag("ALLOW_CROSS_DEVICE_MOVE")

LOG_LEVEL = os.environ.get("WIKI_LOG_LEVEL", "INFO").upper()


@dataclass(frozen=True)
class WikiSettings:
    wiki_root: Path
    documents_dir: str = DOCUMENTS_DIR
    users_file: Path | None = None
    private: bool = False
    allow_insecure_cookies: bool = False
    allow_cross_device_move: bool = False
    session_max_age: int = SESSION_MAX_AGE_SECONDS
    remember_me_max_age: int = REMEMBER_ME_MAX_AGE_SECONDS
    home_path: str = HOME_PATH


def load_settings() -> WikiSettings:
    """Build settings from the module-level values (environment driven)."""
    return WikiSettings(
        wiki_root=WIKI_ROOT.resolve(),
        documents_dir=DOCUMENTS_DIR,
        users_file=USERS_FILE,
        private=PRIVATE,
        allow_insecure_cookies=ALLOW_INSECURE_COOKIES,
        allow_cross_device_move=ALLOW_CROSS_DEVICE_MOVE,
        session_max_age=SESSION_MAX_AGE_SECONDS,
        remember_me_max_age=REMEMBER_ME_MAX_AGE_SECONDS,
    )
