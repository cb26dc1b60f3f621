"""Pending-relocation markers.

A marker is written before the primary move and removed once the secondary
stores have been mirrored. Markers that survive a crash are replayed at
startup so history and comments are not left behind at the old path.
"""
from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import dataclass
from pathlib import Path

from .layout import WikiLayout
from .mover import MirrorStatus, mirror_secondary


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingRelocation:
    id: str
    old_path: str
    new_path: str
    created_at: float

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "old_path": self.old_path,
            "new_path": self.new_path,
            "created_at": self.created_at,
        }


class RelocationJournal:
    def __init__(self, root: Path) -> None:
        self.root = root

    def _marker_path(self, marker_id: str) -> Path:
        return self.root / f"{marker_id}.json"

    def begin(self, old_path: str, new_path: str) -> PendingRelocation:
        marker = PendingRelocation(
            id=uuid.uuid4().hex,
            old_path=old_path,
            new_path=new_path,
            created_at=time.time(),
        )
        self.root.mkdir(parents=True, exist_ok=True)
        self._marker_path(marker.id).write_text(
            json.dumps(marker.to_dict(), indent=2, sort_keys=True), encoding="utf-8"
        )
        return marker

    def complete(self, marker: PendingRelocation) -> None:
        try:
            self._marker_path(marker.id).unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Failed to clear relocation marker %s: %s", marker.id, exc)

    def pending(self) -> list[PendingRelocation]:
        if not self.root.exists():
            return []
        markers: list[PendingRelocation] = []
        for child in sorted(self.root.glob("*.json")):
            try:
                data = json.loads(child.read_text(encoding="utf-8"))
                markers.append(
                    PendingRelocation(
                        id=str(data["id"]),
                        old_path=str(data["old_path"]),
                        new_path=str(data["new_path"]),
                        created_at=float(data.get("created_at", 0)),
                    )
                )
            except (OSError, ValueError, KeyError, TypeError) as exc:
                logger.warning("Ignoring unreadable relocation marker %s: %s", child.name, exc)
        markers.sort(key=lambda m: m.created_at)
        return markers


def recover_pending_relocations(layout: WikiLayout, journal: RelocationJournal) -> int:
    """Finish mirroring for relocations interrupted after the primary move.

    Returns the number of markers processed.
    """
    processed = 0
    for marker in journal.pending():
        try:
            moved = layout.node_dir(marker.new_path).exists() and not layout.node_dir(marker.old_path).exists()
        except ValueError as exc:
            logger.warning("Dropping relocation marker %s with invalid paths: %s", marker.id, exc)
            journal.complete(marker)
            processed += 1
            continue
        if moved:
            results = mirror_secondary(layout, marker.old_path, marker.new_path)
            failed = [r.store for r in results if r.status is MirrorStatus.FAILED]
            if failed:
                logger.warning(
                    "Recovered relocation %s -> %s with failures in: %s",
                    marker.old_path,
                    marker.new_path,
                    ", ".join(failed),
                )
            else:
                logger.info("Recovered relocation %s -> %s", marker.old_path, marker.new_path)
        else:
            logger.info("Dropping relocation marker %s: primary move never happened", marker.id)
        journal.complete(marker)
        processed += 1
    return processed
