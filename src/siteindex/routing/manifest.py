"""In-memory index over the routes manifest."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator, Literal, Mapping

from siteindex.diagnostics import Diagnostics
from siteindex.models import RouteEntry
from siteindex.routing.paths import normalize_pathname, normalize_page_id, page_id_in_path

LOGGER = logging.getLogger(__name__)

MAX_CHAIN_DEPTH = 200
_HIDDEN_CRUMBS = frozenset({"/blog/list", "/list"})

DuplicatePolicy = Literal["first", "last"]


def parse_manifest(raw: Any, diagnostics: Diagnostics | None = None) -> list[RouteEntry]:
    """Normalize raw manifest JSON into entries, dropping malformed rows."""
    if not isinstance(raw, list):
        if raw is not None and diagnostics is not None:
            diagnostics.dropped("manifest", "malformed", "manifest is not a list")
        return []

    entries: list[RouteEntry] = []
    for row in raw:
        if not isinstance(row, dict):
            if diagnostics is not None:
                diagnostics.dropped("manifest", "malformed", repr(row)[:80])
            continue
        entry_id = normalize_page_id(row.get("id"))
        route_path = str(row.get("routePath") or "").strip()
        if not entry_id or not route_path:
            if diagnostics is not None:
                diagnostics.dropped("manifest", "malformed", f"id={entry_id!r} routePath={route_path!r}")
            continue
        entries.append(
            RouteEntry(
                id=entry_id,
                kind=str(row.get("kind") or "page").strip() or "page",
                title=str(row.get("title") or "").strip(),
                route_path=route_path,
                parent_id=normalize_page_id(row.get("parentId")) or None,
                nav_group=str(row.get("navGroup") or "").strip(),
            )
        )
    return entries


class RouteManifestIndex:
    """Lookups between page ids, route paths and parents."""

    def __init__(
        self,
        entries: Iterable[RouteEntry],
        *,
        duplicates: DuplicatePolicy = "first",
        diagnostics: Diagnostics | None = None,
    ) -> None:
        self.entries: list[RouteEntry] = list(entries)
        self.duplicates: list[RouteEntry] = []
        self._by_route: dict[str, RouteEntry] = {}
        self._by_id: dict[str, RouteEntry] = {}

        for entry in self.entries:
            existing = self._by_route.get(entry.route_path)
            if existing is not None:
                dropped = entry if duplicates == "first" else existing
                self.duplicates.append(dropped)
                LOGGER.warning(
                    "Duplicate route %s (ids %s, %s); keeping %s",
                    entry.route_path,
                    existing.id,
                    entry.id,
                    "first" if duplicates == "first" else "last",
                )
                if diagnostics is not None:
                    diagnostics.dropped("manifest", "duplicate", entry.route_path)
                if duplicates == "first":
                    continue
            self._by_route[entry.route_path] = entry
            self._by_id.setdefault(entry.id, entry)

    @classmethod
    def from_raw(
        cls,
        raw: Any,
        *,
        duplicates: DuplicatePolicy = "first",
        diagnostics: Diagnostics | None = None,
    ) -> "RouteManifestIndex":
        return cls(parse_manifest(raw, diagnostics), duplicates=duplicates, diagnostics=diagnostics)

    def __len__(self) -> int:
        return len(self._by_route)

    def __iter__(self) -> Iterator[RouteEntry]:
        return iter(self._by_route.values())

    def resolve_page_id(self, path: str) -> str | None:
        entry = self._by_route.get(path)
        return entry.id if entry else None

    def route_for_id(self, page_id: str) -> str | None:
        entry = self._by_id.get(normalize_page_id(page_id))
        return entry.route_path if entry else None

    def entry_for_id(self, page_id: str) -> RouteEntry | None:
        return self._by_id.get(normalize_page_id(page_id))

    def entry_for_route(self, path: str) -> RouteEntry | None:
        return self._by_route.get(path)

    def build_parent_chain(self) -> dict[str, str | None]:
        return {entry.id: entry.parent_id for entry in self.entries}

    def ancestors(self, page_id: str, parent_chain: Mapping[str, str | None] | None = None) -> list[str]:
        """The page followed by its ancestors, nearest first.

        The walk stops at a missing parent, a repeated id or after
        ``MAX_CHAIN_DEPTH`` steps.
        """
        chain = parent_chain if parent_chain is not None else self.build_parent_chain()
        return walk_parent_chain(page_id, chain)

    def breadcrumb(self, route_path: str) -> str:
        """Title trail such as ``Home / Works / Project``."""
        entry = self._by_route.get(route_path) or self._by_route.get(normalize_pathname(route_path))
        if entry is None:
            return ""

        titles: list[str] = []
        seen: set[str] = set()
        while entry is not None and len(seen) < MAX_CHAIN_DEPTH:
            if entry.id in seen:
                break
            seen.add(entry.id)
            path = entry.route_path.rstrip("/") or "/"
            hidden = path in _HIDDEN_CRUMBS or entry.title.lower() == "list"
            if not hidden:
                titles.append("Home" if path == "/" else entry.title or "Untitled")
            entry = self._by_id.get(entry.parent_id) if entry.parent_id else None

        crumbs: list[str] = []
        for title in reversed(titles):
            if not crumbs or crumbs[-1] != title:
                crumbs.append(title)
        return " / ".join(crumbs)

    def id_redirect(self, pathname: str) -> str | None:
        """Canonical route for a bare ``/<page id>`` path, if it differs."""
        path = normalize_pathname(pathname)
        page_id = page_id_in_path(path)
        if not page_id:
            return None
        target = self.route_for_id(page_id)
        if not target:
            return None
        canonical = normalize_pathname(target)
        return canonical if canonical != path else None


def walk_parent_chain(page_id: str, parent_chain: Mapping[str, str | None]) -> list[str]:
    chain: list[str] = []
    seen: set[str] = set()
    current: str | None = normalize_page_id(page_id)
    while current and current not in seen and len(chain) < MAX_CHAIN_DEPTH:
        seen.add(current)
        chain.append(current)
        current = parent_chain.get(current)
    return chain

