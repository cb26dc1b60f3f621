"""Primary node relocation and best-effort mirroring of secondary stores.

The primary move is a single os.rename, so it either happens completely or
not at all. Secondary stores (revision history, comments) follow afterwards;
their failures never undo the primary move.
"""
from __future__ import annotations

import errno
import logging
import os
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .errors import ConflictError, InternalError, NotFoundError
from .layout import WikiLayout


logger = logging.getLogger(__name__)

_TARGET_OCCUPIED_ERRNOS = {errno.EEXIST, errno.ENOTEMPTY, errno.ENOTDIR, errno.EISDIR}


class MirrorStatus(str, Enum):
    MOVED = "moved"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class MirrorResult:
    store: str
    source: Path
    target: Path
    status: MirrorStatus
    error: str | None = None

    def to_warning(self) -> dict[str, str]:
        return {"store": self.store, "error": self.error or ""}


def _copy_then_delete(source: Path, target: Path) -> None:
    if source.is_dir():
        shutil.copytree(source, target, symlinks=True)
        shutil.rmtree(source)
    else:
        shutil.copy2(source, target)
        source.unlink()


def move_primary(source: Path, target: Path, allow_copy_fallback: bool = False) -> None:
    """Move a content node from source to target.

    Raises NotFoundError if the source vanished, ConflictError if the target
    was occupied in the meantime and InternalError for anything else
    (including cross-device renames unless allow_copy_fallback is set).
    """
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.error("Failed to create target directory %s: %s", target.parent, exc)
        raise InternalError(f"Failed to create target directory: {exc.strerror or exc}") from exc
    except UnicodeError as exc:
        raise InternalError("Failed to create target directory: path cannot be encoded") from exc

    logger.info("Moving %s to %s", source, target)
    try:
        os.rename(source, target)
        return
    except FileNotFoundError as exc:
        raise NotFoundError("Source document or category not found") from exc
    except OSError as exc:
        if exc.errno in _TARGET_OCCUPIED_ERRNOS:
            raise ConflictError("A document already exists at the target location") from exc
        if exc.errno != errno.EXDEV or not allow_copy_fallback:
            logger.error("Error moving %s: %s", source, exc)
            raise InternalError(f"Failed to move: {exc.strerror or exc}") from exc
    except UnicodeError as exc:
        raise InternalError("Failed to move: path cannot be encoded") from exc

    logger.warning("Rename across devices, copying %s to %s", source, target)
    try:
        _copy_then_delete(source, target)
    except (OSError, shutil.Error) as exc:
        logger.error("Cross-device copy of %s failed: %s", source, exc)
        raise InternalError("Failed to move: cross-device copy failed") from exc


def mirror_store(store: str, source: Path, target: Path) -> MirrorResult:
    if not source.exists():
        return MirrorResult(store=store, source=source, target=target, status=MirrorStatus.SKIPPED)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        os.rename(source, target)
    except OSError as exc:
        logger.warning(
            "Failed to move %s directory: %s",
            store,
            exc,
            extra={"store": store, "source": str(source), "target": str(target)},
        )
        return MirrorResult(
            store=store,
            source=source,
            target=target,
            status=MirrorStatus.FAILED,
            error=exc.strerror or str(exc),
        )
    return MirrorResult(store=store, source=source, target=target, status=MirrorStatus.MOVED)


def mirror_secondary(layout: WikiLayout, old_path: str, new_path: str) -> list[MirrorResult]:
    """Relocate every secondary store entry of old_path to new_path.

    Each store is handled independently; a missing entry is skipped.
    """
    sources = layout.secondary_dirs(old_path)
    targets = layout.secondary_dirs(new_path)
    return [mirror_store(store, sources[store], targets[store]) for store in sources]
