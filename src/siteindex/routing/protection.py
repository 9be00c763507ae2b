"""Protected-route matching by path and by page hierarchy."""

from __future__ import annotations

import hmac
import logging
from typing import Any, Mapping, Sequence

from siteindex.diagnostics import Diagnostics
from siteindex.models import PageRule, PathRule, ProtectedRoute, ProtectionDecision
from siteindex.routing.manifest import RouteManifestIndex, walk_parent_chain
from siteindex.routing.paths import (
    blog_source_route,
    is_bypassed_path,
    is_within,
    normalize_page_id,
    normalize_pathname,
)

LOGGER = logging.getLogger(__name__)

AUTH_COOKIE_PREFIX = "site_auth_"


def _parse_rule(row: Any) -> ProtectedRoute | None:
    if not isinstance(row, dict):
        return None
    rule_id = str(row.get("id") or "").strip()
    mode = str(row.get("mode") or "").strip()
    token = str(row.get("token") or "").strip()
    if not rule_id or mode not in ("exact", "prefix") or not token:
        return None
    auth = "github" if str(row.get("auth") or "").strip() == "github" else "password"
    path = str(row.get("path") or "").strip()

    if str(row.get("key") or "").strip() == "pageId":
        page_id = normalize_page_id(row.get("pageId") or rule_id)
        if not page_id:
            return None
        return PageRule(id=rule_id, page_id=page_id, mode=mode, token=token, auth=auth, path=path)

    if not path:
        return None
    return PathRule(id=rule_id, path=normalize_pathname(path), mode=mode, token=token, auth=auth)


def parse_rules(raw: Any, diagnostics: Diagnostics | None = None) -> list[ProtectedRoute]:
    """Normalize raw protected-routes JSON, dropping malformed rules."""
    if not isinstance(raw, list):
        if raw is not None and diagnostics is not None:
            diagnostics.dropped("protected-routes", "malformed", "rules are not a list")
        return []

    rules: list[ProtectedRoute] = []
    for row in raw:
        rule = _parse_rule(row)
        if rule is None:
            if diagnostics is not None:
                diagnostics.dropped("protected-routes", "malformed", repr(row)[:80])
            continue
        rules.append(rule)
    return rules


def find_path_match(pathname: str, rules: Sequence[ProtectedRoute]) -> PathRule | None:
    """Best path-keyed rule: any exact match, else the longest prefix."""
    path = normalize_pathname(pathname)
    path_rules = [rule for rule in rules if isinstance(rule, PathRule)]

    for rule in path_rules:
        if rule.mode == "exact" and rule.path == path:
            return rule

    best: PathRule | None = None
    for rule in path_rules:
        if rule.mode != "prefix" or rule.path == "/":
            continue
        if is_within(path, rule.path) and (best is None or len(rule.path) > len(best.path)):
            best = rule
    return best


def find_by_hierarchy(
    page_id: str,
    rules: Sequence[ProtectedRoute],
    parent_chain: Mapping[str, str | None],
) -> PageRule | None:
    """Page-keyed rule on the page or its nearest ancestor.

    When several rules target one page the first rule wins, except that a
    github rule replaces an earlier password rule.
    """
    by_page: dict[str, PageRule] = {}
    for rule in rules:
        if not isinstance(rule, PageRule):
            continue
        existing = by_page.get(rule.page_id)
        if existing is None or (rule.auth == "github" and existing.auth != "github"):
            by_page[rule.page_id] = rule
    if not by_page:
        return None

    for current in walk_parent_chain(page_id, parent_chain):
        hit = by_page.get(current)
        if hit is not None:
            return hit
    return None


def lookup_page_id(pathname: str, route_index: RouteManifestIndex) -> str | None:
    path = normalize_pathname(pathname)
    raw = str(pathname or "").strip()
    for candidate in (path, raw, blog_source_route(path)):
        if not candidate:
            continue
        page_id = route_index.resolve_page_id(candidate)
        if page_id:
            return page_id
    return None


def pick_rule(
    pathname: str,
    rules: Sequence[ProtectedRoute],
    route_index: RouteManifestIndex,
    parent_chain: Mapping[str, str | None],
) -> ProtectedRoute | None:
    """Select the protection rule that applies to ``pathname``, if any."""
    direct = find_path_match(pathname, rules)
    if direct is not None:
        return direct

    page_id = lookup_page_id(pathname, route_index)
    if not page_id:
        return None
    return find_by_hierarchy(page_id, rules, parent_chain)


def resolve_protection(
    pathname: str,
    rules: Sequence[ProtectedRoute],
    route_index: RouteManifestIndex,
    parent_chain: Mapping[str, str | None],
) -> ProtectionDecision:
    if not rules or is_bypassed_path(pathname):
        return ProtectionDecision(protected=False)
    rule = pick_rule(pathname, rules, route_index, parent_chain)
    if rule is None:
        return ProtectionDecision(protected=False)
    LOGGER.debug("Path %s protected by rule %s", pathname, rule.id)
    return ProtectionDecision(protected=True, rule=rule)


def auth_cookie_name(rule: ProtectedRoute) -> str:
    return f"{AUTH_COOKIE_PREFIX}{rule.id}"


def is_authorized(rule: ProtectedRoute, cookies: Mapping[str, str]) -> bool:
    """Whether the request cookies unlock a password rule.

    GitHub rules depend on an external login and are never unlocked here.
    """
    if rule.auth != "password":
        return False
    supplied = cookies.get(auth_cookie_name(rule)) or ""
    return bool(supplied) and hmac.compare_digest(supplied.encode("utf-8"), rule.token.encode("utf-8"))
