"""Bounded undo/redo history over the whole project collection."""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from .models import Project, clone_project

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 20

_Snapshot = Tuple[Project, ...]


class HistoryManager:
    """Keep structural copies of the project collection for undo and redo.

    Snapshots cover every project, not only the active one, so a single undo
    stream spans edits made to any project.

    Entries are captured *before* each structural edit. While the live
    collection holds edits that are newer than every entry, the cursor sits one
    past the newest entry. The first undo from that position records the live
    collection as a new entry so that redo can return to it. Whenever the list
    grows past ``limit`` the oldest entry is evicted and the cursor moves down
    with it, so the cursor always names the same state before and after an
    eviction.
    """

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if not isinstance(limit, int):
            raise TypeError(f"limit must be an int, got {type(limit)!r}")
        if limit < 2:
            # Undo needs the pre-edit state and the live state side by side.
            raise ValueError("limit must be at least 2")
        self._limit = limit
        self._entries: List[_Snapshot] = []
        self._cursor = 0

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def cursor(self) -> int:
        return self._cursor

    def __len__(self) -> int:
        return len(self._entries)

    def snapshot(self, projects: Sequence[Project]) -> None:
        """Record ``projects`` as the state preceding an edit.

        Any redo branch beyond the cursor is discarded.
        """

        del self._entries[self._cursor :]
        self._entries.append(_freeze(projects))
        self._evict_overflow()
        self._cursor = len(self._entries)

    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def undo(self, projects: Sequence[Project]) -> List[Project] | None:
        """Step back one entry and return a fresh copy of that state.

        ``projects`` is the live collection; it is recorded when undoing from
        the newest edit. Returns ``None`` when there is nothing to undo.
        """

        if not self.can_undo():
            return None

        if self._cursor == len(self._entries):
            self._entries.append(_freeze(projects))
            self._evict_overflow()
            if self._cursor == 0:
                return None

        previous = self._cursor
        self._cursor -= 1
        logger.debug("Undo: %d -> %d", previous, self._cursor)
        return _thaw(self._entries[self._cursor])

    def redo(self) -> List[Project] | None:
        if not self.can_redo():
            return None

        previous = self._cursor
        self._cursor += 1
        logger.debug("Redo: %d -> %d", previous, self._cursor)
        return _thaw(self._entries[self._cursor])

    def clear(self) -> None:
        self._entries.clear()
        self._cursor = 0

    def _evict_overflow(self) -> None:
        while len(self._entries) > self._limit:
            del self._entries[0]
            self._cursor = max(self._cursor - 1, 0)


def _freeze(projects: Sequence[Project]) -> _Snapshot:
    return tuple(clone_project(project) for project in projects)


def _thaw(snapshot: _Snapshot) -> List[Project]:
    return [clone_project(project) for project in snapshot]


__all__ = ["DEFAULT_HISTORY_LIMIT", "HistoryManager"]
