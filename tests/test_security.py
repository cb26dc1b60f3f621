from pathlib import Path

import pytest

from wiki_backend.security import is_safe_slug, is_well_formed_token, normalize_path, safe_join

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("", ""),
        (None, ""),
        ("/", ""),
        ("docs/guide", "docs/guide"),
        ("/docs/guide/", "docs/guide"),
        ("docs\\guide\\intro", "docs/guide/intro"),
        ("docs//guide/./intro", "docs/guide/intro"),
        ("docs/tmp/../guide", "docs/guide"),
        ("../../etc/passwd", "etc/passwd"),
        ("\\\\docs\\..\\guide\\", "guide"),
        ("//docs", "docs"),
    ],
)
def test_normalize_path(raw, expected):
    assert normalize_path(raw) == expected


@pytest.mark.parametrize(
    "raw",
    ["", "/", "a/b", "/a//b/", "a\\..\\b", "..", "./x/../../y", "//a", "///a/b///", "a b/ c", "x\\\\y/."],
)
def test_normalize_path_is_idempotent(raw):
    once = normalize_path(raw)
    assert normalize_path(once) == once
    assert not once.startswith("/")
    assert not once.endswith("/")
    assert "\\" not in once


@pytest.mark.parametrize("slug", ["beta", "Test", "release-notes", "v1.2"])
def test_safe_slugs(slug):
    assert is_safe_slug(slug)


@pytest.mark.parametrize("slug", ["", ".", "..", "a/b", "a\\b", " padded", None])
def test_unsafe_slugs(slug):
    assert not is_safe_slug(slug)


def test_safe_join_stays_inside_base(tmp_path: Path):
    assert safe_join(tmp_path, "a", "b") == tmp_path / "a" / "b"
    assert safe_join(tmp_path, "") == tmp_path
    with pytest.raises(ValueError):
        safe_join(tmp_path, "..", "outside")
    with pytest.raises(ValueError):
        safe_join(tmp_path, "a/../../outside")


def test_token_shape():
    assert is_well_formed_token("A" * 43)
    assert not is_well_formed_token("A" * 42)
    assert not is_well_formed_token("A" * 42 + "/")
    assert not is_well_formed_token(None)
