from __future__ import annotations

import logging
from pathlib import Path

from .config import DOCUMENT_FILENAME
from .errors import ConflictError
from .relocation import RelocationPlan


logger = logging.getLogger(__name__)


def _dir_has_entries(path: Path) -> bool:
    try:
        return next(path.iterdir(), None) is not None
    except OSError:
        return False


def find_conflict(plan: RelocationPlan, source_dir: Path, target_dir: Path) -> str | None:
    """Return why target_dir cannot receive the node, or None if it can.

    A document at the target is a conflict unless this is a case-only rename
    into a different parent directory. Case-insensitive filesystems see the
    source itself at a same-directory case-only target, so that case stays a
    conflict.
    """
    if target_dir == source_dir:
        return None

    if (target_dir / DOCUMENT_FILENAME).exists():
        cross_directory_case_only = plan.is_case_only_rename and source_dir.parent != target_dir.parent
        if not cross_directory_case_only:
            return "A document already exists at the target location"

    if target_dir.exists():
        if not target_dir.is_dir():
            return "A file already exists at the target location"
        if _dir_has_entries(target_dir):
            return "Target directory already exists and is not empty"
    return None


def ensure_no_conflict(plan: RelocationPlan, source_dir: Path, target_dir: Path) -> None:
    reason = find_conflict(plan, source_dir, target_dir)
    if reason is not None:
        logger.info("Relocation %s -> %s rejected: %s", plan.source_path, plan.target_path, reason)
        raise ConflictError(reason)
