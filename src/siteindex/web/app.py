"""FastAPI application exposing protection decisions and search."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import List

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from siteindex.config import AppConfig
from siteindex.index.search import coerce_int
from siteindex.models import PageRule, ProtectedRoute, SearchOptions
from siteindex.routing.protection import is_authorized
from siteindex.service import SiteService

LOGGER = logging.getLogger(__name__)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SearchItemModel(_CamelModel):
    title: str
    route_path: str
    kind: str
    score: float
    snippet: str = ""
    breadcrumb: str = ""


class GroupCountModel(_CamelModel):
    label: str
    count: int


class SearchMetaModel(_CamelModel):
    total: int
    counts: dict[str, int]
    groups: List[GroupCountModel]
    offset: int
    limit: int
    has_more: bool


class SearchResponseModel(_CamelModel):
    items: List[SearchItemModel]
    meta: SearchMetaModel


class RuleModel(_CamelModel):
    """Public view of a protection rule; the token is never exposed."""

    id: str
    key: str
    mode: str
    auth: str
    path: str = ""
    page_id: str | None = None


class ProtectionModel(_CamelModel):
    path: str
    protected: bool
    authorized: bool = True
    rule: RuleModel | None = None


class ResolveModel(_CamelModel):
    path: str
    page_id: str | None = None
    redirect: str | None = None


def _rule_model(rule: ProtectedRoute) -> RuleModel:
    if isinstance(rule, PageRule):
        return RuleModel(id=rule.id, key="pageId", mode=rule.mode, auth=rule.auth, path=rule.path, page_id=rule.page_id)
    return RuleModel(id=rule.id, key="path", mode=rule.mode, auth=rule.auth, path=rule.path)


@lru_cache(maxsize=1)
def get_service() -> SiteService:
    return SiteService.from_config(AppConfig(), base_dir=Path.cwd())


router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/api/search", response_model=SearchResponseModel)
async def search_content(
    q: str = "",
    type: str = "all",
    scope: str = "",
    offset: str | None = Query(None),
    limit: str | None = Query(None),
    service: SiteService = Depends(get_service),
) -> SearchResponseModel:
    options = SearchOptions(
        type=type,
        scope=scope,
        offset=coerce_int(offset, 0),
        limit=coerce_int(limit, service.config.default_limit),
    )
    response = service.search(q, options)
    meta = response.meta
    return SearchResponseModel(
        items=[
            SearchItemModel(
                title=hit.title,
                route_path=hit.route_path,
                kind=hit.kind,
                score=hit.score,
                snippet=hit.snippet,
                breadcrumb=hit.breadcrumb,
            )
            for hit in response.items
        ],
        meta=SearchMetaModel(
            total=meta.total,
            counts=meta.counts,
            groups=[GroupCountModel(label=label, count=count) for label, count in meta.groups],
            offset=meta.offset,
            limit=meta.limit,
            has_more=meta.has_more,
        ),
    )


@router.get("/api/protection", response_model=ProtectionModel)
async def protection(
    request: Request,
    path: str = "/",
    service: SiteService = Depends(get_service),
) -> ProtectionModel:
    decision = service.resolve_protection(path)
    if not decision.protected or decision.rule is None:
        return ProtectionModel(path=path, protected=False)
    return ProtectionModel(
        path=path,
        protected=True,
        authorized=is_authorized(decision.rule, request.cookies),
        rule=_rule_model(decision.rule),
    )


@router.get("/api/resolve", response_model=ResolveModel)
async def resolve(path: str = "/", service: SiteService = Depends(get_service)) -> ResolveModel:
    resolution = service.resolve(path)
    return ResolveModel(path=resolution.path, page_id=resolution.page_id, redirect=resolution.redirect)


def create_app(service: SiteService | None = None) -> FastAPI:
    application = FastAPI(title="siteindex", version="0.1.0")
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    application.include_router(router)
    if service is not None:
        application.dependency_overrides[get_service] = lambda: service

    @application.on_event("startup")
    async def startup_event() -> None:
        logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
        LOGGER.info("siteindex API ready")

    return application


app = create_app()
