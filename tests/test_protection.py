"""Tests for protected-route matching."""

from __future__ import annotations

import pytest

from siteindex.diagnostics import DropCounter
from siteindex.models import PageRule, PathRule
from siteindex.routing.manifest import RouteManifestIndex
from siteindex.routing.protection import (
    auth_cookie_name,
    find_by_hierarchy,
    find_path_match,
    is_authorized,
    parse_rules,
    pick_rule,
    resolve_protection,
)

from conftest import COURSE_ID, MANIFEST, POST_ID, RULES, SLIDES_ID, TEACHING_ID

EMPTY_INDEX = RouteManifestIndex([])


def _path_rule(rule_id: str, path: str, mode: str = "prefix", **extra: str) -> dict:
    return {"id": rule_id, "path": path, "mode": mode, "token": f"t-{rule_id}", **extra}


class TestParseRules:
    """Test parse_rules function."""

    def test_builds_tagged_variants(self) -> None:
        """Should produce PageRule for pageId keys and PathRule otherwise."""
        rules = parse_rules(RULES)

        assert isinstance(rules[0], PageRule)
        assert rules[0].page_id == TEACHING_ID
        assert rules[0].auth == "password"
        assert isinstance(rules[1], PathRule)
        assert rules[1].path == "/drafts"
        assert rules[1].auth == "github"

    def test_normalizes_rule_paths(self) -> None:
        rules = parse_rules([_path_rule("a", "/Docs/")])
        assert rules[0].path == "/Docs"

    def test_page_rule_falls_back_to_rule_id(self) -> None:
        """Should use the rule id as page id when pageId is absent."""
        rules = parse_rules([{"id": TEACHING_ID, "key": "pageId", "mode": "exact", "token": "t"}])
        assert rules[0].page_id == TEACHING_ID

    @pytest.mark.parametrize(
        "row",
        [
            {"path": "/a", "mode": "exact", "token": "t"},
            {"id": "x", "path": "/a", "token": "t"},
            {"id": "x", "path": "/a", "mode": "fuzzy", "token": "t"},
            {"id": "x", "path": "/a", "mode": "exact"},
            {"id": "x", "path": "", "mode": "exact", "token": "t"},
            {"id": "x", "key": "path", "mode": "prefix", "token": "t"},
            "garbage",
        ],
    )
    def test_drops_malformed_rules(self, row: object) -> None:
        """Should exclude rules missing their discriminant fields."""
        counter = DropCounter()
        assert parse_rules([row], counter) == []
        assert counter.total("protected-routes") == 1

    def test_non_list_is_empty(self) -> None:
        assert parse_rules({"rules": []}) == []


class TestFindPathMatch:
    """Test find_path_match function."""

    def test_exact_beats_prefix_regardless_of_order(self) -> None:
        """Should prefer an exact rule over any prefix rule."""
        prefix = _path_rule("p", "/docs", "prefix")
        exact = _path_rule("e", "/docs", "exact")

        for raw in ([prefix, exact], [exact, prefix]):
            assert find_path_match("/docs", parse_rules(raw)).id == "e"

    def test_exact_does_not_cover_children(self) -> None:
        rules = parse_rules([_path_rule("e", "/docs", "exact")])
        assert find_path_match("/docs/page", rules) is None

    def test_longest_prefix_wins(self) -> None:
        """Should choose the most specific prefix rule."""
        rules = parse_rules([_path_rule("docs", "/docs"), _path_rule("internal", "/docs/internal")])

        assert find_path_match("/docs/internal/page", rules).id == "internal"
        assert find_path_match("/docs/public", rules).id == "docs"

    def test_prefix_respects_segment_boundary(self) -> None:
        """Should not let /a match /ab."""
        rules = parse_rules([_path_rule("a", "/a")])

        assert find_path_match("/a", rules).id == "a"
        assert find_path_match("/a/b", rules).id == "a"
        assert find_path_match("/ab", rules) is None

    def test_root_prefix_ignored(self) -> None:
        rules = parse_rules([_path_rule("root", "/")])
        assert find_path_match("/anything", rules) is None

    def test_request_path_normalized(self) -> None:
        rules = parse_rules([_path_rule("docs", "/docs", "exact")])
        assert find_path_match("/docs/", rules).id == "docs"

    def test_page_rules_ignored(self) -> None:
        """Should never match page-keyed rules by literal path."""
        rules = parse_rules([{"id": "p", "key": "pageId", "pageId": "x", "path": "/docs", "mode": "exact", "token": "t"}])
        assert find_path_match("/docs", rules) is None


class TestHierarchyFallback:
    """Test find_by_hierarchy and pick_rule fallback."""

    def test_inherits_from_parent(self) -> None:
        """A child page should inherit its parent's page rule."""
        index = RouteManifestIndex.from_raw(
            [
                {"id": "a", "routePath": "/blog/x", "parentId": None},
                {"id": "b", "routePath": "/blog/x/y", "parentId": "a"},
            ]
        )
        rules = parse_rules([{"id": "r1", "key": "pageId", "pageId": "a", "mode": "exact", "path": "", "token": "t1"}])

        rule = pick_rule("/blog/x/y", rules, index, index.build_parent_chain())
        assert rule is not None
        assert rule.id == "r1"

    def test_inherits_from_grandparent(self) -> None:
        index = RouteManifestIndex.from_raw(MANIFEST)
        rules = parse_rules(RULES)

        rule = pick_rule("/teaching/course/slides", rules, index, index.build_parent_chain())
        assert rule is not None and rule.id == "r-teach"

    def test_nearest_ancestor_wins(self) -> None:
        rules = parse_rules(
            [
                {"id": "far", "key": "pageId", "pageId": TEACHING_ID, "mode": "exact", "token": "t"},
                {"id": "near", "key": "pageId", "pageId": COURSE_ID, "mode": "exact", "token": "t"},
            ]
        )
        index = RouteManifestIndex.from_raw(MANIFEST)
        assert find_by_hierarchy(SLIDES_ID, rules, index.build_parent_chain()).id == "near"

    def test_same_page_rules(self) -> None:
        """The first rule for a page wins unless a later one needs github login."""
        rows = [
            {"id": "pw1", "key": "pageId", "pageId": COURSE_ID, "mode": "exact", "token": "t"},
            {"id": "pw2", "key": "pageId", "pageId": COURSE_ID, "mode": "exact", "token": "t"},
            {"id": "gh", "key": "pageId", "pageId": COURSE_ID, "mode": "exact", "token": "t", "auth": "github"},
        ]
        chain = {COURSE_ID: None}

        assert find_by_hierarchy(COURSE_ID, parse_rules(rows[:2]), chain).id == "pw1"
        assert find_by_hierarchy(COURSE_ID, parse_rules(rows), chain).id == "gh"

    def test_cycle_terminates_without_match(self) -> None:
        """A cyclic parent chain should end and yield no rule."""
        index = RouteManifestIndex.from_raw(
            [
                {"id": "a", "routePath": "/a", "parentId": "b"},
                {"id": "b", "routePath": "/b", "parentId": "a"},
            ]
        )
        rules = parse_rules([{"id": "r", "key": "pageId", "pageId": "zzz", "mode": "exact", "token": "t"}])

        assert pick_rule("/a", rules, index, index.build_parent_chain()) is None

    def test_direct_path_rule_beats_hierarchy(self) -> None:
        index = RouteManifestIndex.from_raw(MANIFEST)
        rules = parse_rules(RULES + [_path_rule("course", "/teaching/course", "exact")])

        assert pick_rule("/teaching/course", rules, index, index.build_parent_chain()).id == "course"

    def test_blog_post_resolves_backing_route(self) -> None:
        """A canonical /blog/<slug> should find the page at /blog/list/<slug>."""
        index = RouteManifestIndex.from_raw(MANIFEST)
        rules = parse_rules([{"id": "post", "key": "pageId", "pageId": POST_ID, "mode": "exact", "token": "t"}])

        assert pick_rule("/blog/my-post", rules, index, index.build_parent_chain()).id == "post"

    def test_unknown_path_is_public(self) -> None:
        rules = parse_rules(RULES)
        assert pick_rule("/elsewhere", rules, EMPTY_INDEX, {}) is None


class TestResolveProtection:
    """Test resolve_protection decisions."""

    def test_protected_decision(self) -> None:
        index = RouteManifestIndex.from_raw(MANIFEST)
        decision = resolve_protection("/drafts/new", parse_rules(RULES), index, index.build_parent_chain())

        assert decision.protected is True
        assert decision.rule is not None and decision.rule.id == "r-drafts"

    def test_public_decision(self) -> None:
        decision = resolve_protection("/", parse_rules(RULES), EMPTY_INDEX, {})
        assert decision.protected is False
        assert decision.rule is None

    def test_bypassed_paths_never_protected(self) -> None:
        rules = parse_rules([_path_rule("api", "/api")])
        assert resolve_protection("/api/search", rules, EMPTY_INDEX, {}).protected is False

    def test_no_rules(self) -> None:
        assert resolve_protection("/teaching", [], EMPTY_INDEX, {}).protected is False


class TestIsAuthorized:
    """Test cookie checks against rule tokens."""

    def test_matching_cookie(self) -> None:
        rule = PathRule(id="r", path="/a", mode="exact", token="secret")
        assert auth_cookie_name(rule) == "site_auth_r"
        assert is_authorized(rule, {"site_auth_r": "secret"}) is True

    def test_wrong_or_missing_cookie(self) -> None:
        rule = PathRule(id="r", path="/a", mode="exact", token="secret")
        assert is_authorized(rule, {"site_auth_r": "nope"}) is False
        assert is_authorized(rule, {}) is False

    def test_github_rules_need_login(self) -> None:
        rule = PathRule(id="r", path="/a", mode="exact", token="secret", auth="github")
        assert is_authorized(rule, {"site_auth_r": "secret"}) is False
