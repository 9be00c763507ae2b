"""Text helpers for query tokenizing and result snippets."""

from __future__ import annotations

import re
from typing import Iterable, Sequence

_WS_RE = re.compile(r"\s+")

MAX_QUERY_CHARS = 200
SNIPPET_MAX_CHARS = 190
_SENTENCE_BREAKS = (". ", "! ", "? ", "; ")


def collapse_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", str(text or "")).strip()


def normalize_query(query: str) -> str:
    """Trim, collapse whitespace and bound the query length."""
    return collapse_whitespace(query)[:MAX_QUERY_CHARS]


def tokenize_query(query: str, *, max_terms: int = 6) -> list[str]:
    """Lowercase whitespace-delimited terms, deduplicated in order."""
    terms: list[str] = []
    for part in normalize_query(query).lower().split(" "):
        if part and part not in terms:
            terms.append(part)
        if len(terms) >= max_terms:
            break
    return terms


def best_position(haystack: str, terms: Iterable[str]) -> int:
    """Earliest index of any term in ``haystack``, or -1."""
    best = -1
    for term in terms:
        if not term:
            continue
        idx = haystack.find(term)
        if idx >= 0 and (best == -1 or idx < best):
            best = idx
    return best


def cap_text(text: str, limit: int = 2200) -> str:
    text = str(text or "")
    return text[:limit]


def cap_headings(headings: Iterable[str], *, max_items: int = 18, max_chars: int = 520) -> tuple[str, ...]:
    out: list[str] = []
    chars = 0
    for raw in headings:
        heading = collapse_whitespace(raw)
        if not heading:
            continue
        out.append(heading)
        chars += len(heading) + 1
        if len(out) >= max_items or chars >= max_chars:
            break
    return tuple(out)


def build_snippet(text: str, terms: Sequence[str], *, max_chars: int = SNIPPET_MAX_CHARS) -> str:
    """Excerpt ``text`` around the first matching term.

    The excerpt prefers sentence boundaries on both sides and falls back to a
    word boundary. Text without a match yields its leading characters so a
    title-only hit still shows some context.
    """
    raw = collapse_whitespace(text)
    if not raw:
        return ""

    idx = best_position(raw.lower(), terms)
    if idx < 0:
        snippet = raw[:max_chars].strip()
        return f"{snippet} …" if len(raw) > len(snippet) else snippet

    look_left = raw[max(0, idx - 140) : idx]
    look_right = raw[idx : idx + 180]

    left = max(look_left.rfind(mark) for mark in _SENTENCE_BREAKS)
    skip = 2
    if left < 0 and idx > len(look_left):
        left = look_left.find(" ")
        skip = 1
    start = idx - len(look_left) + (left + skip if left >= 0 else 0)
    start = max(0, min(start, idx))

    end = idx + len(look_right)
    right_marks = [pos for pos in (look_right.find(mark) for mark in _SENTENCE_BREAKS) if pos >= 0]
    if right_marks:
        end = min(end, idx + min(right_marks) + 1)
    else:
        space = look_right.rfind(" ")
        if space > 60:
            end = idx + space

    snippet = raw[start:end].strip()
    if len(snippet) > max_chars:
        snippet = snippet[:max_chars].strip()
    if start > 0:
        snippet = f"… {snippet}"
    if end < len(raw):
        snippet = f"{snippet} …"
    return snippet
