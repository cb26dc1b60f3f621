from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config import (
    COMMENTS_DIRNAME,
    DOCUMENT_FILENAME,
    DOCUMENTS_VERSIONS_PREFIX,
    HOME_PATH,
    JOURNAL_DIRNAME,
    VERSIONS_DIRNAME,
    WikiSettings,
)
from .security import safe_join


@dataclass(frozen=True)
class WikiLayout:
    """Where each store keeps a node, given its normalized wiki path."""

    root: Path
    documents_root: Path
    versions_root: Path
    comments_root: Path
    journal_root: Path
    home_path: str = HOME_PATH

    @classmethod
    def from_settings(cls, settings: WikiSettings) -> "WikiLayout":
        root = settings.wiki_root
        return cls(
            root=root,
            documents_root=safe_join(root, settings.documents_dir),
            versions_root=root / VERSIONS_DIRNAME,
            comments_root=root / COMMENTS_DIRNAME,
            journal_root=root / JOURNAL_DIRNAME,
            home_path=settings.home_path,
        )

    def ensure_dirs(self) -> None:
        for path in (self.documents_root, self.versions_root, self.comments_root, self.journal_root):
            path.mkdir(parents=True, exist_ok=True)

    def node_dir(self, rel_path: str) -> Path:
        return safe_join(self.documents_root, rel_path)

    def document_file(self, rel_path: str) -> Path:
        return self.node_dir(rel_path) / DOCUMENT_FILENAME

    def versions_dir(self, rel_path: str) -> Path:
        """Revision history directory for a node.

        The home page keeps its history under versions/pages/home; every other
        node is filed under versions/documents/ unless its path already
        starts with that segment.
        """
        if rel_path == self.home_path:
            return safe_join(self.versions_root, *self.home_path.split("/"))
        if rel_path.startswith(DOCUMENTS_VERSIONS_PREFIX + "/"):
            return safe_join(self.versions_root, rel_path)
        return safe_join(self.versions_root, DOCUMENTS_VERSIONS_PREFIX, rel_path)

    def comments_dir(self, rel_path: str) -> Path:
        return safe_join(self.comments_root, rel_path)

    def secondary_dirs(self, rel_path: str) -> dict[str, Path]:
        return {
            VERSIONS_DIRNAME: self.versions_dir(rel_path),
            COMMENTS_DIRNAME: self.comments_dir(rel_path),
        }
