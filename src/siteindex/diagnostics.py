"""Observability hook for records dropped while loading content."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Protocol

LOGGER = logging.getLogger(__name__)


class Diagnostics(Protocol):
    def dropped(self, source: str, reason: str, detail: str = "") -> None: ...


class DropCounter:
    """Counts dropped records per ``(source, reason)`` and logs each drop at DEBUG.

    Components that need a louder signal, such as duplicate routes in the
    manifest index, log their own warning.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.counts: Counter[tuple[str, str]] = Counter()
        self._logger = logger or LOGGER

    def dropped(self, source: str, reason: str, detail: str = "") -> None:
        self.counts[(source, reason)] += 1
        self._logger.debug("Dropped %s record (%s): %s", source, reason, detail)

    def total(self, source: str | None = None) -> int:
        return sum(
            count for (src, _reason), count in self.counts.items() if source is None or src == source
        )

    def reset(self) -> None:
        self.counts.clear()
