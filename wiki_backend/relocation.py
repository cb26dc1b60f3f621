"""Classify a relocation request and compute where the node ends up.

Pure path arithmetic: nothing here touches the filesystem, so every rejection
happens before any mutation.
"""
from __future__ import annotations

import posixpath
from dataclasses import dataclass
from enum import Enum

from .config import HOME_PATH, HOMEPAGE_SEGMENT
from .errors import ValidationError
from .security import is_safe_slug, normalize_path


class OperationKind(str, Enum):
    RENAME = "rename"
    MOVE = "move"
    MOVE_AND_RENAME = "move_and_rename"


@dataclass(frozen=True)
class RelocationRequest:
    source_path: str
    target_path: str = ""
    new_slug: str = ""

    def normalized(self) -> "RelocationRequest":
        return RelocationRequest(
            source_path=normalize_path(self.source_path),
            target_path=normalize_path(self.target_path),
            new_slug=(self.new_slug or "").strip(),
        )


@dataclass(frozen=True)
class RelocationPlan:
    kind: OperationKind
    source_path: str
    target_path: str
    new_slug: str = ""

    @property
    def source_slug(self) -> str:
        return posixpath.basename(self.source_path)

    @property
    def source_parent(self) -> str:
        return posixpath.dirname(self.source_path)

    @property
    def target_parent(self) -> str:
        return posixpath.dirname(self.target_path)

    @property
    def is_case_only_rename(self) -> bool:
        return bool(self.new_slug) and self.source_slug.lower() == self.new_slug.lower()


def _join(parent: str, slug: str) -> str:
    return f"{parent}/{slug}" if parent else slug


def is_home_path(path: str, home_path: str = HOME_PATH) -> bool:
    return path.lower() == home_path.lower()


def classify(request: RelocationRequest) -> OperationKind | None:
    is_rename = bool(request.new_slug)
    # An empty target with a new slug renames in place; without one it means "move to root".
    move_to_root = (
        request.target_path == ""
        and not is_rename
        and posixpath.dirname(request.source_path) != ""
    )
    is_move = request.target_path != "" or move_to_root

    if is_rename and is_move:
        return OperationKind.MOVE_AND_RENAME
    if is_move:
        return OperationKind.MOVE
    if is_rename:
        return OperationKind.RENAME
    return None


def _resolve_rename(request: RelocationRequest) -> str:
    return _join(posixpath.dirname(request.source_path), request.new_slug)


def _resolve_move(request: RelocationRequest) -> str:
    return _join(request.target_path, posixpath.basename(request.source_path))


def _resolve_move_and_rename(request: RelocationRequest) -> str:
    return _join(request.target_path, request.new_slug)


_RESOLVERS = {
    OperationKind.RENAME: _resolve_rename,
    OperationKind.MOVE: _resolve_move,
    OperationKind.MOVE_AND_RENAME: _resolve_move_and_rename,
}


def plan_relocation(request: RelocationRequest, home_path: str = HOME_PATH) -> RelocationPlan:
    """Turn a normalized request into a plan, or raise ValidationError.

    Rules, in order:
    1. the home page (or an empty/`homepage` source) never moves;
    2. nothing may be moved onto the home page;
    3. a new slug makes it a rename, a target path (or a nested source with
       neither target nor slug, i.e. move-to-root) makes it a move, both
       make it a move-and-rename, neither is rejected;
    4. a plan whose target equals its source is rejected.
    """
    source = request.source_path
    target = request.target_path

    if (
        not source
        or is_home_path(source, home_path)
        or source.lower().endswith("/" + HOMEPAGE_SEGMENT)
        or source.lower() == HOMEPAGE_SEGMENT
    ):
        raise ValidationError("Cannot move or rename the home page")
    if target and is_home_path(target, home_path):
        raise ValidationError("Cannot move or rename to the home page location")
    if request.new_slug and not is_safe_slug(request.new_slug):
        raise ValidationError("New slug must be a single path segment")

    kind = classify(request)
    if kind is None:
        raise ValidationError("Either target path or new slug must be provided")
    resolved = _RESOLVERS[kind](request)

    if resolved == source:
        raise ValidationError("Source and target paths are the same")
    if is_home_path(resolved, home_path):
        raise ValidationError("Cannot move or rename to the home page location")
    if resolved.startswith(source + "/"):
        raise ValidationError("Cannot move a category into itself")

    return RelocationPlan(kind=kind, source_path=source, target_path=resolved, new_slug=request.new_slug)
