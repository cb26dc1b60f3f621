from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .config import WikiSettings
from .conflicts import ensure_no_conflict
from .errors import InternalError, NotFoundError, ValidationError
from .journal import RelocationJournal
from .layout import WikiLayout
from .mover import MirrorResult, MirrorStatus, mirror_secondary, move_primary
from .relocation import RelocationPlan, RelocationRequest, plan_relocation


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RelocationResult:
    plan: RelocationPlan
    mirrors: list[MirrorResult] = field(default_factory=list)

    @property
    def old_path(self) -> str:
        return self.plan.source_path

    @property
    def new_path(self) -> str:
        return self.plan.target_path

    @property
    def warnings(self) -> list[dict[str, str]]:
        return [m.to_warning() for m in self.mirrors if m.status is MirrorStatus.FAILED]


class RelocationService:
    def __init__(self, layout: WikiLayout, journal: RelocationJournal, settings: WikiSettings) -> None:
        self.layout = layout
        self.journal = journal
        self.settings = settings

    @classmethod
    def from_settings(cls, settings: WikiSettings) -> "RelocationService":
        layout = WikiLayout.from_settings(settings)
        return cls(layout, RelocationJournal(layout.journal_root), settings)

    def plan(self, request: RelocationRequest) -> RelocationPlan:
        if not (request.source_path or "").strip():
            raise ValidationError("Source path is required")
        return plan_relocation(request.normalized(), home_path=self.layout.home_path)

    def relocate(self, request: RelocationRequest) -> RelocationResult:
        plan = self.plan(request)
        logger.info(
            "Relocation %s: %s -> %s",
            plan.kind.value,
            plan.source_path,
            plan.target_path,
        )

        source_dir = self.layout.node_dir(plan.source_path)
        target_dir = self.layout.node_dir(plan.target_path)
        try:
            source_exists = source_dir.exists()
        except OSError as exc:
            raise InternalError(f"Error accessing source: {exc.strerror or exc}") from exc
        except UnicodeError as exc:
            raise InternalError("Error accessing source: path cannot be encoded") from exc
        if not source_exists:
            raise NotFoundError("Source document or category not found")

        try:
            ensure_no_conflict(plan, source_dir, target_dir)
        except OSError as exc:
            logger.error("Error checking target %s: %s", plan.target_path, exc)
            raise InternalError(f"Error accessing target: {exc.strerror or exc}") from exc
        except UnicodeError as exc:
            raise InternalError("Error accessing target: path cannot be encoded") from exc

        try:
            marker = self.journal.begin(plan.source_path, plan.target_path)
        except OSError as exc:
            raise InternalError(f"Failed to record relocation: {exc.strerror or exc}") from exc

        try:
            move_primary(source_dir, target_dir, allow_copy_fallback=self.settings.allow_cross_device_move)
        except Exception:
            self.journal.complete(marker)
            raise

        mirrors = mirror_secondary(self.layout, plan.source_path, plan.target_path)
        self.journal.complete(marker)

        result = RelocationResult(plan=plan, mirrors=mirrors)
        if result.warnings:
            logger.warning(
                "Relocated %s -> %s with %d secondary store warning(s)",
                plan.source_path,
                plan.target_path,
                len(result.warnings),
            )
        return result
