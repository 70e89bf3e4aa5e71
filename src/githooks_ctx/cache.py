"""Per-invocation memoization store shared by every session component."""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


class SessionCache:
    """Maps a section name to a mutable dict owned by the current hook invocation.

    Sections are created on first access and live until the process exits or
    a consumer drops them with ``clean``.
    """

    def __init__(self) -> None:
        self._sections: dict[str, dict[Any, Any]] = {}

    def cache(self, section: str) -> dict[Any, Any]:
        """Return the store for section, creating it empty on first use."""
        store = self._sections.get(section)
        if store is None:
            logger.debug("creating cache section %s", section)
            store = self._sections[section] = {}
        return store

    def clean(self, section: str) -> None:
        """Discard a section; the next ``cache`` call starts it afresh."""
        self._sections.pop(section, None)

    def sections(self) -> list[str]:
        return list(self._sections)

    def __contains__(self, section: object) -> bool:
        return section in self._sections
