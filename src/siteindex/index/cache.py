"""Modification-time gated cache over on-disk content JSON."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from siteindex.utils.files import content_file_candidates, find_first_file, read_json_file

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class CachedJson:
    file: Path
    mtime_ms: float
    parsed: Any


class ContentJsonCache:
    """Parsed JSON per content file, refreshed when the file's mtime changes.

    Holds a single-entry fast path for the most recent hit plus a dict keyed
    by file path. Refreshes are not locked; concurrent re-reads of the same
    file converge on the same parsed value.
    """

    def __init__(self, content_dir: Path) -> None:
        self.content_dir = Path(content_dir)
        self._last: CachedJson | None = None
        self._by_file: dict[Path, CachedJson] = {}

    def locate(self, rel_path: str) -> Path | None:
        return find_first_file(content_file_candidates(self.content_dir, rel_path))

    def read(self, rel_path: str) -> CachedJson | None:
        """Return the cached entry for ``rel_path`` or ``None`` when unavailable."""
        file = self.locate(rel_path)
        if file is None:
            LOGGER.debug("Content file %s not found under %s", rel_path, self.content_dir)
            return None

        try:
            mtime_ms = file.stat().st_mtime_ns / 1_000_000
        except OSError as exc:
            LOGGER.debug("Unable to stat %s: %s", file, exc)
            return None

        last = self._last
        if last is not None and last.file == file and last.mtime_ms == mtime_ms:
            return last

        hit = self._by_file.get(file)
        if hit is not None and hit.mtime_ms == mtime_ms:
            self._last = hit
            return hit

        parsed = read_json_file(file)
        if parsed is None:
            return None

        entry = CachedJson(file=file, mtime_ms=mtime_ms, parsed=parsed)
        self._by_file[file] = entry
        self._last = entry
        LOGGER.debug("Loaded %s (mtime %.0f)", file, mtime_ms)
        return entry

    def read_parsed(self, rel_path: str) -> Any | None:
        entry = self.read(rel_path)
        return entry.parsed if entry is not None else None

    def clear(self) -> None:
        self._last = None
        self._by_file.clear()
