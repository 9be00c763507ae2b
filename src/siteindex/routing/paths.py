"""Request path normalization and page id helpers."""

from __future__ import annotations

import re

_UUID_RE = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE)
_HEX32_RE = re.compile(r"[0-9a-f]{32}", re.IGNORECASE)
_ID_PATH_RE = re.compile(r"^/([0-9a-f]{32})$", re.IGNORECASE)
_SLASHES_RE = re.compile(r"/{2,}")
_BLOG_SLUG_RE = re.compile(r"^/blog/([^/]+)$")

# Legacy prefixes of the blog database, mapped onto the public blog routes.
LEGACY_ALIASES: tuple[tuple[str, str], ...] = (
    ("/blog/list", "/blog"),
    ("/list", "/blog"),
)

_BYPASS_EXACT = frozenset({"/auth", "/favicon.ico", "/robots.txt", "/sitemap.xml"})
_BYPASS_PREFIXES = (
    "/api/",
    "/_next/",
    "/assets/",
    "/styles/",
    "/fonts/",
    "/web_image/",
    "/notion-assets/",
    "/cdn-cgi/",
)


def compact_id(id_or_url: str) -> str:
    """Extract a page id from an id or URL as compact lowercase 32-hex."""
    text = str(id_or_url or "").strip()
    match = _UUID_RE.search(text) or _HEX32_RE.search(text)
    if not match:
        return ""
    return match.group(0).replace("-", "").lower()


def normalize_page_id(value: object) -> str:
    """Compact form for workspace ids, trimmed raw string for anything else."""
    text = str(value or "").strip()
    return compact_id(text) or text


def dashify_id(id32: str) -> str:
    text = str(id32 or "").replace("-", "").lower()
    if not re.fullmatch(r"[0-9a-f]{32}", text):
        return ""
    return f"{text[:8]}-{text[8:12]}-{text[12:16]}-{text[16:20]}-{text[20:]}"


def slugify(text: str) -> str:
    slug = str(text or "").strip().lower()
    slug = re.sub(r"['\"]", "", slug)
    slug = re.sub(r"[^a-z0-9]+", "-", slug)
    return slug.strip("-")


def _apply_alias(path: str) -> str:
    for legacy, canonical in LEGACY_ALIASES:
        if path == legacy:
            return canonical
        if path.startswith(legacy + "/"):
            return canonical + path[len(legacy) :]
    return path


def normalize_pathname(pathname: str) -> str:
    """Canonicalize a request path.

    Trailing slashes are dropped (except for ``/``), repeated slashes are
    collapsed and legacy blog aliases are rewritten. Input that does not look
    like a path is returned trimmed but otherwise untouched.
    """
    path = str(pathname or "").strip()
    if not path:
        return "/"
    if not path.startswith("/"):
        return path

    for sep in ("?", "#"):
        path = path.split(sep, 1)[0]
    path = _SLASHES_RE.sub("/", path).strip()
    while len(path) > 1 and path.endswith("/"):
        path = path[:-1].rstrip()

    while True:
        aliased = _apply_alias(path)
        if aliased == path:
            break
        path = aliased

    if _ID_PATH_RE.match(path):
        path = path.lower()
    return path


def page_id_in_path(pathname: str) -> str:
    """Page id of a bare ``/<32 hex>`` path, lowercased, or an empty string."""
    match = _ID_PATH_RE.match(str(pathname or "").strip())
    return match.group(1).lower() if match else ""


def blog_source_route(pathname: str) -> str:
    """Backing ``/blog/list/<slug>`` route for a public blog post path."""
    match = _BLOG_SLUG_RE.match(normalize_pathname(pathname))
    if not match:
        return ""
    return f"/blog/list/{match.group(1)}"


def is_within(path: str, prefix: str) -> bool:
    """Segment-aware prefix test: ``/a`` covers ``/a`` and ``/a/b`` only."""
    if prefix == "/":
        return True
    return path == prefix or path.startswith(prefix + "/")


def is_bypassed_path(pathname: str) -> bool:
    """Framework, asset and auth paths that are never access controlled."""
    path = str(pathname or "").strip() or "/"
    return path in _BYPASS_EXACT or path.startswith(_BYPASS_PREFIXES)


def is_ignored_path(route_path: str) -> bool:
    """Routes that never appear in search results."""
    path = normalize_pathname(route_path)
    raw = str(route_path or "").strip().rstrip("/")
    if path.startswith("/_next") or path.startswith("/api/"):
        return True
    if path == "/auth" or path.startswith("/site-admin/"):
        return True
    return raw in ("/blog/list", "/list")
