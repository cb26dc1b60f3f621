from __future__ import annotations

import posixpath
import re
from pathlib import Path


# secrets.token_urlsafe(32) -> 43 chars of the URL-safe base64 alphabet.
_TOKEN_RE = re.compile(r"^[A-Za-z0-9_-]{43}$")


def normalize_path(path: str | None) -> str:
    """Canonicalize a user supplied wiki path.

    Back-slashes become forward slashes, `.`/`..`/duplicate separators are
    collapsed (`..` never climbs above the root) and leading/trailing
    separators are stripped. The empty string denotes the root.

    normalize_path(normalize_path(p)) == normalize_path(p) for every p.
    """
    if not path:
        return ""
    cleaned = path.replace("\\", "/")
    # Rooting the path first makes normpath drop `..` segments at the top.
    cleaned = posixpath.normpath("/" + cleaned)
    return cleaned.strip("/")


def is_safe_slug(slug: str) -> bool:
    """Allow only a single path segment (no directories)."""
    if not isinstance(slug, str) or not slug:
        return False
    if "/" in slug or "\\" in slug:
        return False
    if slug in {".", ".."}:
        return False
    if slug != slug.strip():
        return False
    return True


def is_well_formed_token(token: str | None) -> bool:
    """Cheap shape check before a cookie value reaches the session store."""
    return isinstance(token, str) and bool(_TOKEN_RE.match(token))


def safe_join(base_dir: Path, *parts: str) -> Path:
    """Join paths and ensure the result stays within base_dir.

    Symlinks are not resolved: wiki nodes are addressed lexically, and a
    rename must act on the link itself, not on whatever it points at.
    """
    base_dir = Path(posixpath.normpath(base_dir.as_posix()))
    candidate = base_dir
    for part in parts:
        if part:
            candidate = candidate / part
    candidate = Path(posixpath.normpath(candidate.as_posix()))
    if candidate == base_dir:
        return candidate
    if base_dir not in candidate.parents:
        raise ValueError("Path traversal attempt")
    return candidate
