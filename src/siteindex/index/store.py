"""Typed, memoized views over the synced content artifacts."""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from siteindex.diagnostics import Diagnostics, DropCounter
from siteindex.index.cache import CachedJson, ContentJsonCache
from siteindex.models import ProtectedRoute, RouteEntry, SearchIndexItem
from siteindex.routing.manifest import DuplicatePolicy, RouteManifestIndex
from siteindex.routing.protection import parse_rules
from siteindex.utils.text import cap_headings, cap_text

LOGGER = logging.getLogger(__name__)

MANIFEST_FILE = "routes-manifest.json"
PROTECTED_ROUTES_FILE = "protected-routes.json"
SEARCH_INDEX_FILE = "search-index.json"

T = TypeVar("T")


def parse_search_index(raw: Any, diagnostics: Diagnostics | None = None) -> list[SearchIndexItem]:
    """Normalize raw search index JSON, dropping items without a route."""
    if not isinstance(raw, list):
        if raw is not None and diagnostics is not None:
            diagnostics.dropped("search-index", "malformed", "index is not a list")
        return []

    items: list[SearchIndexItem] = []
    for row in raw:
        route_path = str(row.get("routePath") or "").strip() if isinstance(row, dict) else ""
        if not route_path:
            if diagnostics is not None:
                diagnostics.dropped("search-index", "malformed", repr(row)[:80])
            continue
        headings = row.get("headings")
        items.append(
            SearchIndexItem(
                id=str(row.get("id") or "").strip(),
                title=str(row.get("title") or "").strip(),
                kind=str(row.get("kind") or "page").strip() or "page",
                route_path=route_path,
                text=cap_text(str(row.get("text") or "")),
                headings=cap_headings(str(h or "") for h in headings) if isinstance(headings, list) else (),
            )
        )
    return items


class ContentStore:
    """Reads the manifest, rules and search index through a shared cache.

    Each derived structure is rebuilt only when its source file changes on
    disk; a missing or unreadable file yields an empty structure.
    """

    def __init__(
        self,
        cache: ContentJsonCache,
        *,
        diagnostics: Diagnostics | None = None,
        duplicates: DuplicatePolicy = "first",
    ) -> None:
        self.cache = cache
        self.diagnostics = diagnostics if diagnostics is not None else DropCounter()
        self.duplicates = duplicates
        self._derived: dict[str, tuple[tuple[Any, float], Any]] = {}

    def _derive(self, rel_path: str, name: str, build: Callable[[CachedJson | None], T]) -> T:
        entry = self.cache.read(rel_path)
        key = (entry.file, entry.mtime_ms) if entry is not None else (None, 0.0)
        hit = self._derived.get(name)
        if hit is not None and hit[0] == key:
            return hit[1]
        value = build(entry)
        self._derived[name] = (key, value)
        return value

    def route_index(self) -> RouteManifestIndex:
        return self._derive(
            MANIFEST_FILE,
            "route_index",
            lambda entry: RouteManifestIndex.from_raw(
                entry.parsed if entry is not None else None,
                duplicates=self.duplicates,
                diagnostics=self.diagnostics,
            ),
        )

    def manifest(self) -> list[RouteEntry]:
        return self.route_index().entries

    def parent_chain(self) -> dict[str, str | None]:
        return self._derive(
            MANIFEST_FILE,
            "parent_chain",
            lambda _entry: self.route_index().build_parent_chain(),
        )

    def rules(self) -> list[ProtectedRoute]:
        return self._derive(
            PROTECTED_ROUTES_FILE,
            "rules",
            lambda entry: parse_rules(entry.parsed if entry is not None else None, self.diagnostics),
        )

    def search_items(self) -> list[SearchIndexItem]:
        return self._derive(
            SEARCH_INDEX_FILE,
            "search_items",
            lambda entry: parse_search_index(entry.parsed if entry is not None else None, self.diagnostics),
        )
