"""Utility helpers for locating and reading content files."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable

LOGGER = logging.getLogger(__name__)


def sanitize_rel_path(rel_path: str) -> str:
    """Strip leading slashes; reject empty and traversal paths."""
    rel = str(rel_path or "").strip().lstrip("/")
    if not rel or ".." in rel:
        return ""
    return rel


def content_file_candidates(content_dir: Path, rel_path: str) -> list[Path]:
    """Return lookup candidates, generated output first."""
    rel = sanitize_rel_path(rel_path)
    if not rel:
        return []
    return [content_dir / "generated" / rel, content_dir / rel]


def find_first_file(candidates: Iterable[Path]) -> Path | None:
    for path in candidates:
        try:
            if path.is_file():
                return path
        except OSError:
            continue
    return None


def read_json_file(path: Path) -> Any | None:
    """Parse a JSON file, returning ``None`` on any read or decode failure."""
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except (OSError, ValueError) as exc:
        LOGGER.debug("Unable to read %s: %s", path, exc)
        return None
