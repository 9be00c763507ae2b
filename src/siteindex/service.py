"""Facade used by request middleware and the search endpoint."""

from __future__ import annotations

import logging
from pathlib import Path

from siteindex.config import AppConfig
from siteindex.diagnostics import Diagnostics
from siteindex.index.cache import ContentJsonCache
from siteindex.index.search import Searcher
from siteindex.index.store import ContentStore
from siteindex.models import ProtectionDecision, RouteResolution, SearchOptions, SearchResponse
from siteindex.routing.paths import normalize_pathname
from siteindex.routing.protection import lookup_page_id, resolve_protection

LOGGER = logging.getLogger(__name__)


class SiteService:
    """Route resolution, access decisions and search over one content directory."""

    def __init__(self, store: ContentStore, config: AppConfig | None = None) -> None:
        self.store = store
        self.config = config or AppConfig()
        self.searcher = Searcher(store, max_terms=self.config.max_terms, max_limit=self.config.max_limit)

    @classmethod
    def from_config(
        cls,
        config: AppConfig | None = None,
        *,
        base_dir: Path | None = None,
        diagnostics: Diagnostics | None = None,
    ) -> "SiteService":
        config = config or AppConfig()
        content_dir = config.resolve_content_dir(base_dir)
        cache = ContentJsonCache(content_dir)
        store = ContentStore(cache, diagnostics=diagnostics, duplicates=config.duplicates)
        return cls(store, config)

    def resolve(self, pathname: str) -> RouteResolution:
        """Canonical path, backing page id and redirect target for a request."""
        raw = str(pathname or "").strip()
        path = normalize_pathname(pathname)
        index = self.store.route_index()
        page_id = lookup_page_id(pathname, index)

        redirect = index.id_redirect(path)
        if redirect is None and raw.startswith("/") and raw != path:
            redirect = path
        return RouteResolution(path=path, page_id=page_id, redirect=redirect)

    def resolve_protection(self, pathname: str) -> ProtectionDecision:
        return resolve_protection(
            pathname,
            self.store.rules(),
            self.store.route_index(),
            self.store.parent_chain(),
        )

    def search(self, query: str, options: SearchOptions | None = None) -> SearchResponse:
        if options is None:
            options = SearchOptions(limit=self.config.default_limit)
        return self.searcher.search(query, options)
