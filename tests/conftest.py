"""Shared fixtures: a synced content directory on disk."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

POST_ID = "aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"
TEACHING_ID = "bbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb"
COURSE_ID = "cccccccccccccccccccccccccccccccc"
SLIDES_ID = "dddddddddddddddddddddddddddddddd"
HOME_ID = "eeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee"

MANIFEST = [
    {"id": HOME_ID, "kind": "page", "title": "Home", "routePath": "/", "parentId": ""},
    {
        "id": TEACHING_ID,
        "kind": "page",
        "title": "Teaching",
        "routePath": "/teaching",
        "parentId": HOME_ID,
        "navGroup": "primary",
    },
    {"id": COURSE_ID, "kind": "page", "title": "Course", "routePath": "/teaching/course", "parentId": TEACHING_ID},
    {"id": SLIDES_ID, "kind": "page", "title": "Slides", "routePath": "/teaching/course/slides", "parentId": COURSE_ID},
    {"id": POST_ID, "kind": "page", "title": "My Post", "routePath": "/blog/list/my-post", "parentId": HOME_ID},
]

RULES = [
    {"id": "r-teach", "key": "pageId", "pageId": TEACHING_ID, "mode": "prefix", "path": "", "token": "t-teach"},
    {"id": "r-drafts", "path": "/drafts", "mode": "prefix", "token": "t-drafts", "auth": "github"},
]

SEARCH_INDEX = [
    {"id": HOME_ID, "title": "Home", "kind": "page", "routePath": "/", "text": "Welcome to my site."},
    {
        "id": TEACHING_ID,
        "title": "Teaching",
        "kind": "page",
        "routePath": "/teaching",
        "text": "Courses on fairness and visualization.",
    },
    {
        "id": POST_ID,
        "title": "My Post",
        "kind": "page",
        "routePath": "/blog/my-post",
        "headings": ["Introduction"],
        "text": "A post about fairness in machine learning. Fairness matters.",
    },
]


def write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def content_dir(tmp_path: Path) -> Path:
    """Content directory laid out like the sync pipeline's output."""
    root = tmp_path / "content"
    write_json(root / "generated" / "routes-manifest.json", MANIFEST)
    write_json(root / "generated" / "protected-routes.json", RULES)
    write_json(root / "generated" / "search-index.json", SEARCH_INDEX)
    return root
