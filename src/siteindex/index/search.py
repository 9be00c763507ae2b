"""Ranked full-text search over the synced search index."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal, Sequence

from siteindex.models import SearchHit, SearchIndexItem, SearchKind, SearchMeta, SearchOptions, SearchResponse
from siteindex.routing.manifest import RouteManifestIndex
from siteindex.routing.paths import is_ignored_path, is_within, normalize_pathname
from siteindex.utils.text import best_position, build_snippet, normalize_query, tokenize_query

if TYPE_CHECKING:
    from siteindex.index.store import ContentStore

LOGGER = logging.getLogger(__name__)

TypeKey = Literal["pages", "blog", "databases"]

DEFAULT_LIMIT = 20
MAX_LIMIT = 50

EXACT_TITLE_WEIGHT = 1000.0
EXACT_ROUTE_WEIGHT = 500.0
TITLE_ALL_TERMS_WEIGHT = 400.0
TITLE_TERM_WEIGHT = 60.0
HEADING_TERM_WEIGHT = 40.0
ROUTE_TERM_WEIGHT = 25.0
BODY_TERM_WEIGHT = 12.0
BODY_MAX_OCCURRENCES = 50
NAV_BOOST = 15.0

# Manifest-only ranking: lower cost is better, reported as MANIFEST_BASE - cost.
MANIFEST_BASE = 1000.0
MANIFEST_TITLE_MISS = 50
MANIFEST_ROUTE_MISS = 80
MANIFEST_ROUTE_OFFSET = 10
MANIFEST_MAX_LENGTH_PENALTY = 200.0

_KIND_FOR_TYPE: dict[TypeKey, SearchKind] = {"pages": "page", "blog": "blog", "databases": "database"}
_BLOG_HELPERS = ("/blog/list", "/list")


@dataclass(slots=True)
class _Scored:
    item: SearchIndexItem
    canon: str
    type_key: TypeKey
    score: float
    body_pos: int


def _raw_path(route_path: str) -> str:
    return str(route_path or "").strip().rstrip("/") or "/"


def classify_type(kind: str, route_path: str) -> TypeKey:
    if str(kind or "").strip().lower() == "database":
        return "databases"
    if is_within(normalize_pathname(route_path), "/blog"):
        if _raw_path(route_path) in _BLOG_HELPERS:
            return "databases"
        return "blog"
    return "pages"


def matches_type(type_filter: str, key: TypeKey) -> bool:
    wanted = str(type_filter or "all").strip().lower()
    if wanted in ("database", "databases"):
        return key == "databases"
    if wanted == "blog":
        return key == "blog"
    if wanted in ("page", "pages"):
        return key == "pages"
    return True


def group_label(kind: str, route_path: str) -> str:
    """Section label used to group results, e.g. ``Pages / Works``."""
    path = route_path if route_path.startswith("/") else f"/{route_path}"
    if path == "/":
        section = "Home"
    elif is_within(path, "/blog"):
        section = "Blog"
    else:
        first = path.strip("/").split("/")[0]
        section = first[:1].upper() + first[1:] if first else "Home"

    if kind == "blog":
        return "Blog" if section == "Blog" else f"Blog / {section}"
    if kind == "database":
        return f"Databases / {section}"
    return f"Pages / {section}"


def _group_rank(label: str) -> int:
    if label == "Home":
        return 0
    if label == "Blog":
        return 1
    if label.startswith("Pages / Home"):
        return 2
    if label.startswith("Pages / "):
        return 3
    if label.startswith("Blog / "):
        return 4
    if label.startswith("Databases / "):
        return 5
    return 6


def group_counts(labels: Sequence[str]) -> list[tuple[str, int]]:
    counts = Counter(label for label in labels if label)
    ordered = sorted(counts, key=lambda label: (_group_rank(label), label))
    return [(label, counts[label]) for label in ordered]


def coerce_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def clamp_limit(limit: Any, *, max_limit: int = MAX_LIMIT) -> int:
    return max(1, min(coerce_int(limit, DEFAULT_LIMIT), max_limit))


def clamp_offset(offset: Any, total: int) -> int:
    return max(0, min(coerce_int(offset, 0), total))


def body_frequency_score(text: str, term: str) -> float:
    """Diminishing credit per repeat: 1 + 1/2 + 1/3 ... scaled."""
    occurrences = min(text.count(term), BODY_MAX_OCCURRENCES)
    return sum(BODY_TERM_WEIGHT / k for k in range(1, occurrences + 1))


def score_item(
    item: SearchIndexItem,
    canon: str,
    query: str,
    terms: Sequence[str],
    *,
    nav_boost: float = 0.0,
) -> float:
    """Relevance of one item; higher is better."""
    title = item.title.lower()
    route = canon.lower()
    headings = "\n".join(item.headings).lower()
    body = item.text.lower()
    wanted = query.lower()

    score = 0.0
    if title.strip() == wanted:
        score += EXACT_TITLE_WEIGHT
    elif route == wanted:
        score += EXACT_ROUTE_WEIGHT
    if terms and all(term in title for term in terms):
        score += TITLE_ALL_TERMS_WEIGHT

    for term in terms:
        if term in title:
            score += TITLE_TERM_WEIGHT
        if term in route:
            score += ROUTE_TERM_WEIGHT
        if term in headings:
            score += HEADING_TERM_WEIGHT
        score += body_frequency_score(body, term)

    return score + nav_boost


def manifest_cost(title: str, canon: str, terms: Sequence[str]) -> float:
    """Cost of a manifest-only match; earlier title and route hits cost less."""
    title_pos = best_position(title.lower(), terms)
    route_pos = best_position(canon.lower(), terms)
    return (
        (MANIFEST_TITLE_MISS if title_pos < 0 else title_pos)
        + (MANIFEST_ROUTE_MISS if route_pos < 0 else route_pos + MANIFEST_ROUTE_OFFSET)
        + min(MANIFEST_MAX_LENGTH_PENALTY, len(canon) / 8)
    )


def _manifest_items(manifest: RouteManifestIndex) -> list[SearchIndexItem]:
    return [
        SearchIndexItem(id=entry.id, title=entry.title, kind=entry.kind, route_path=entry.route_path)
        for entry in manifest.entries
    ]


def _haystack(item: SearchIndexItem, canon: str, *, with_id: bool = False) -> str:
    parts = (item.title, canon, item.id) if with_id else (item.title, canon, *item.headings, item.text)
    return "\n".join(parts).lower()


def _snippet(item: SearchIndexItem, terms: Sequence[str], body_pos: int) -> str:
    if body_pos >= 0:
        return build_snippet(item.text, terms)
    matched = next((h for h in item.headings if best_position(h.lower(), terms) >= 0), "")
    source = f"{matched}\n{item.text}" if matched else "\n".join((*item.headings, item.text))
    return build_snippet(source, terms)


def search_items(
    query: str,
    items: Sequence[SearchIndexItem],
    options: SearchOptions | None = None,
    *,
    manifest: RouteManifestIndex | None = None,
    max_terms: int = 6,
    max_limit: int = MAX_LIMIT,
) -> SearchResponse:
    """Rank ``items`` against ``query``.

    Scope and type filters are applied before scoring so that pagination runs
    over the filtered, ranked set. ``meta.total`` counts that set before
    pagination; ``meta.counts`` breaks the scoped matches down per type.

    When ``items`` is empty and a manifest is given, the manifest's titles,
    routes and ids are searched instead so the site stays searchable before
    the first index build.
    """
    options = options or SearchOptions()
    limit = clamp_limit(options.limit, max_limit=max_limit)
    normalized = normalize_query(query)
    terms = tokenize_query(normalized, max_terms=max_terms)
    if not terms:
        return SearchResponse(items=[], meta=SearchMeta(total=0, offset=0, limit=limit))

    scope = normalize_pathname(options.scope) if str(options.scope or "").strip() else ""
    from_manifest = not items and manifest is not None
    if from_manifest:
        items = _manifest_items(manifest)

    candidates: list[tuple[SearchIndexItem, str, TypeKey]] = []
    for item in items:
        if is_ignored_path(item.route_path):
            continue
        canon = normalize_pathname(item.route_path)
        if scope and not is_within(canon, scope):
            continue
        hay = _haystack(item, canon, with_id=from_manifest)
        if not all(term in hay for term in terms):
            continue
        candidates.append((item, canon, classify_type(item.kind, item.route_path)))

    routes_by_type: dict[str, set[str]] = {"pages": set(), "blog": set(), "databases": set()}
    for _item, canon, type_key in candidates:
        routes_by_type[type_key].add(canon)
    counts = {key: len(routes) for key, routes in routes_by_type.items()}
    counts["all"] = len(set().union(*routes_by_type.values()))

    scored: list[_Scored] = []
    for item, canon, type_key in candidates:
        if not matches_type(options.type, type_key):
            continue
        if from_manifest:
            score = MANIFEST_BASE - manifest_cost(item.title, canon, terms)
        else:
            entry = manifest.entry_for_route(item.route_path) if manifest is not None else None
            boost = NAV_BOOST if entry is not None and entry.nav_group else 0.0
            score = score_item(item, canon, normalized, terms, nav_boost=boost)
        scored.append(_Scored(item, canon, type_key, score, best_position(item.text.lower(), terms)))

    if from_manifest:
        scored.sort(key=lambda s: (-s.score, s.item.title, s.canon))
    else:
        scored.sort(key=lambda s: (-s.score, len(s.item.title), s.canon))

    ranked: list[_Scored] = []
    seen: set[str] = set()
    for match in scored:
        if match.canon in seen:
            continue
        seen.add(match.canon)
        ranked.append(match)

    total = len(ranked)
    offset = clamp_offset(options.offset, total)
    page = ranked[offset : offset + limit]

    hits = [
        SearchHit(
            title="Home" if match.canon == "/" else match.item.title or "Untitled",
            route_path=match.canon,
            kind=_KIND_FOR_TYPE[match.type_key],
            score=round(match.score, 4),
            snippet=_snippet(match.item, terms, match.body_pos),
            breadcrumb=(manifest.breadcrumb(match.item.route_path) if manifest is not None else "")
            or ("Home" if match.canon == "/" else ""),
        )
        for match in page
    ]

    meta = SearchMeta(
        total=total,
        counts=counts,
        groups=group_counts([group_label(_KIND_FOR_TYPE[m.type_key], m.canon) for m in ranked]),
        offset=offset,
        limit=limit,
        has_more=offset + limit < total,
    )
    LOGGER.debug("Query %r matched %d of %d items", normalized, total, len(items))
    return SearchResponse(items=hits, meta=meta)


class Searcher:
    """High-level API to query the synced search index."""

    def __init__(self, store: ContentStore, *, max_terms: int = 6, max_limit: int = MAX_LIMIT) -> None:
        self.store = store
        self.max_terms = max_terms
        self.max_limit = max_limit

    def search(self, query: str, options: SearchOptions | None = None) -> SearchResponse:
        return search_items(
            query,
            self.store.search_items(),
            options,
            manifest=self.store.route_index(),
            max_terms=self.max_terms,
            max_limit=self.max_limit,
        )
