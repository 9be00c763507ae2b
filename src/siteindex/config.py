"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from siteindex.index.search import DEFAULT_LIMIT, MAX_LIMIT
from siteindex.routing.manifest import DuplicatePolicy

CONTENT_DIR_ENV = "SITEINDEX_CONTENT_DIR"


def _get_default_content_dir() -> Path:
    """Content directory from the environment, else ``content`` in the cwd."""
    configured = os.environ.get(CONTENT_DIR_ENV, "").strip()
    if configured:
        return Path(configured).expanduser()
    return Path("content")


@dataclass(slots=True)
class AppConfig:
    content_dir: Path | None = None
    default_limit: int = DEFAULT_LIMIT
    max_limit: int = MAX_LIMIT
    max_terms: int = 6
    duplicates: DuplicatePolicy = "first"

    def __post_init__(self) -> None:
        if self.content_dir is None:
            self.content_dir = _get_default_content_dir()

    def resolve_content_dir(self, base_dir: Path | None = None) -> Path:
        if self.content_dir is None:
            self.content_dir = _get_default_content_dir()
        if Path(self.content_dir).is_absolute() or base_dir is None:
            return Path(self.content_dir)
        return base_dir / self.content_dir
