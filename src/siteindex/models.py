"""Core siteindex data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

RuleMode = Literal["exact", "prefix"]
AuthKind = Literal["password", "github"]
SearchKind = Literal["page", "blog", "database"]


@dataclass(slots=True, frozen=True)
class RouteEntry:
    """One content page from the routes manifest."""

    id: str
    kind: str
    title: str
    route_path: str
    parent_id: str | None = None
    nav_group: str = ""


@dataclass(slots=True, frozen=True)
class PathRule:
    """Protection rule matched against the literal request path."""

    id: str
    path: str
    mode: RuleMode
    token: str
    auth: AuthKind = "password"


@dataclass(slots=True, frozen=True)
class PageRule:
    """Protection rule matched through the page hierarchy."""

    id: str
    page_id: str
    mode: RuleMode
    token: str
    auth: AuthKind = "password"
    path: str = ""


ProtectedRoute = Union[PathRule, PageRule]


@dataclass(slots=True, frozen=True)
class SearchIndexItem:
    """Pre-extracted text for one indexed page or section."""

    id: str
    title: str
    kind: str
    route_path: str
    text: str = ""
    headings: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class ProtectionDecision:
    protected: bool
    rule: ProtectedRoute | None = None


@dataclass(slots=True, frozen=True)
class RouteResolution:
    path: str
    page_id: str | None = None
    redirect: str | None = None


@dataclass(slots=True)
class SearchOptions:
    type: str = "all"
    scope: str = ""
    offset: int = 0
    limit: int = 20


@dataclass(slots=True)
class SearchHit:
    title: str
    route_path: str
    kind: SearchKind
    score: float
    snippet: str = ""
    breadcrumb: str = ""


@dataclass(slots=True)
class SearchMeta:
    total: int = 0
    counts: dict[str, int] = field(
        default_factory=lambda: {"all": 0, "pages": 0, "blog": 0, "databases": 0}
    )
    groups: list[tuple[str, int]] = field(default_factory=list)
    offset: int = 0
    limit: int = 20
    has_more: bool = False


@dataclass(slots=True)
class SearchResponse:
    items: list[SearchHit] = field(default_factory=list)
    meta: SearchMeta = field(default_factory=SearchMeta)
