"""In-memory document store for projects, screens and hotspots."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Iterable, List, Mapping, Sequence, Tuple, TypeVar

from pydantic import ValidationError

from .history import DEFAULT_HISTORY_LIMIT, HistoryManager
from .models import (
    Clock,
    Hotspot,
    Project,
    Screen,
    apply_changes,
    clone_hotspot,
    clone_project,
    clone_screen,
    collection_document,
    generate_id,
    rekey_project,
    utcnow,
)
from .persistence import PersistenceAdapter, PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_PROJECTS_KEY = "screenguide-data"

_T = TypeVar("_T")


class DocumentStore:
    """Own the project collection and every mutation applied to it.

    Project-level operations (create, update, delete, duplicate) change the
    collection directly. Screen and hotspot operations act on the active
    project and take a history snapshot first, which makes them undoable.
    Operations addressing an unknown id do nothing. Edits whose data fails
    validation are logged and rejected; neither the collection nor the
    history changes.

    Every change is written through ``adapter`` as a single
    ``{"projects": [...]}`` document. Write failures are logged and the
    in-memory change is kept.
    """

    def __init__(
        self,
        adapter: PersistenceAdapter,
        *,
        storage_key: str = DEFAULT_PROJECTS_KEY,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        clock: Clock = utcnow,
    ) -> None:
        self._adapter: PersistenceAdapter | None = adapter
        self._storage_key = storage_key
        self._clock = clock
        self._projects: List[Project] = []
        self._active_project_id: str | None = None
        self.history = HistoryManager(limit=history_limit)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def load(self) -> None:
        """Replace the collection with the persisted document, if any."""

        self._projects = []
        adapter = self._require_adapter()
        try:
            raw = adapter.get(self._storage_key)
        except PersistenceError:
            logger.exception("Failed to read projects from '%s'", self._storage_key)
            return

        if raw is None:
            return

        try:
            payload = json.loads(raw)
            if not isinstance(payload, dict):
                raise ValueError("project data must be a JSON object")
            entries = payload.get("projects") or []
            if not isinstance(entries, list):
                raise ValueError("'projects' must be a list")
            self._projects = [Project.model_validate(entry) for entry in entries]
        except (ValueError, ValidationError):
            logger.exception(
                "Ignoring unreadable project data stored under '%s'", self._storage_key
            )
            self._projects = []
            return

        logger.debug("Loaded %d projects", len(self._projects))

    def flush(self) -> None:
        self._write_through()

    def close(self) -> None:
        """Flush the collection and detach from the adapter."""

        if self._adapter is None:
            return
        self._write_through()
        self._adapter = None

    def __enter__(self) -> "DocumentStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def projects(self) -> Tuple[Project, ...]:
        return tuple(self._projects)

    @property
    def active_project_id(self) -> str | None:
        return self._active_project_id

    @property
    def active_project(self) -> Project | None:
        if self._active_project_id is None:
            return None
        return self.get_project(self._active_project_id)

    def get_project(self, project_id: str) -> Project | None:
        for project in self._projects:
            if project.id == project_id:
                return project
        return None

    def get_screen(
        self, screen_id: str, *, project_id: str | None = None
    ) -> Screen | None:
        project = self._resolve_project(project_id)
        if project is None:
            return None
        return project.find_screen(screen_id)

    def get_hotspot(
        self, screen_id: str, hotspot_id: str, *, project_id: str | None = None
    ) -> Hotspot | None:
        screen = self.get_screen(screen_id, project_id=project_id)
        if screen is None:
            return None
        for hotspot in screen.hotspots:
            if hotspot.id == hotspot_id:
                return hotspot
        return None

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------
    def create_project(self, name: str, description: str | None = None) -> str:
        """Append an empty project, select it and return its id."""

        now = self._clock()
        project = Project(
            id=generate_id("project"),
            name=name,
            description=description,
            created_at=now,
            updated_at=now,
        )
        self._projects.append(project)
        self._active_project_id = project.id
        self._write_through()
        return project.id

    def update_project(self, project_id: str, changes: Mapping[str, Any]) -> None:
        index = self._project_index(project_id)
        if index is None:
            return
        updated = _validated(
            "project", project_id, lambda: apply_changes(self._projects[index], changes)
        )
        if updated is None:
            return
        updated.updated_at = self._clock()
        self._projects[index] = updated
        self._write_through()

    def delete_project(self, project_id: str) -> None:
        self.delete_projects([project_id])

    def delete_projects(self, project_ids: Iterable[str]) -> None:
        doomed = set(project_ids)
        remaining = [project for project in self._projects if project.id not in doomed]
        if len(remaining) == len(self._projects):
            return

        self._projects = remaining
        if self._active_project_id in doomed:
            self._active_project_id = None
        self._write_through()

    def duplicate_project(self, project_id: str) -> str | None:
        """Append a copy of the project with new ids throughout.

        Returns the id of the copy, or ``None`` when ``project_id`` is unknown.
        """

        source = self.get_project(project_id)
        if source is None:
            return None

        duplicate = rekey_project(
            source, name=f"{source.name} (copy)", nested=True, clock=self._clock
        )
        self._projects.append(duplicate)
        self._write_through()
        return duplicate.id

    def select_project(self, project_id: str | None) -> None:
        self._active_project_id = project_id

    def append_projects(self, projects: Sequence[Project]) -> None:
        """Insert ``projects`` as given, leaving the selection and history alone."""

        if not projects:
            return
        self._projects.extend(
            clone_project(project, keep_files=True) for project in projects
        )
        self._write_through()

    # ------------------------------------------------------------------
    # Screens
    # ------------------------------------------------------------------
    def add_screen(self, screen: Screen | Mapping[str, Any]) -> None:
        project = self.active_project
        if project is None:
            return
        added = _validated(
            "screen", None, lambda: clone_screen(_as_screen(screen), keep_file=True)
        )
        if added is None:
            return
        self._record_edit()
        project.screens.append(added)
        self._finish_edit(project)

    def update_screen(self, screen_id: str, changes: Mapping[str, Any]) -> None:
        project = self.active_project
        if project is None:
            return
        index = _index_of(project.screens, screen_id)
        if index is None:
            return
        updated = _validated(
            "screen", screen_id, lambda: apply_changes(project.screens[index], changes)
        )
        if updated is None:
            return
        self._record_edit()
        project.screens[index] = updated
        self._finish_edit(project)

    def delete_screen(self, screen_id: str) -> None:
        project = self.active_project
        if project is None:
            return
        index = _index_of(project.screens, screen_id)
        if index is None:
            return
        self._record_edit()
        del project.screens[index]
        self._finish_edit(project)

    def reorder_screens(self, screen_ids: Sequence[str]) -> None:
        """Put the listed screens first, in the given order.

        Unknown ids are ignored and unlisted screens follow in their current
        order. Each screen's ``order`` is renumbered to its new position.
        """

        project = self.active_project
        if project is None:
            return

        by_id = {screen.id: screen for screen in project.screens}
        reordered: List[Screen] = []
        for screen_id in screen_ids:
            screen = by_id.pop(screen_id, None)
            if screen is not None:
                reordered.append(screen)
        reordered.extend(screen for screen in project.screens if screen.id in by_id)

        self._record_edit()
        for position, screen in enumerate(reordered):
            screen.order = position
        project.screens = reordered
        self._finish_edit(project)

    # ------------------------------------------------------------------
    # Hotspots
    # ------------------------------------------------------------------
    def add_hotspot(self, screen_id: str, hotspot: Hotspot | Mapping[str, Any]) -> None:
        screen = self.get_screen(screen_id)
        if screen is None:
            return
        added = _validated("hotspot", None, lambda: clone_hotspot(_as_hotspot(hotspot)))
        if added is None:
            return
        self._record_edit()
        screen.hotspots.append(added)
        self._finish_active_edit()

    def update_hotspot(
        self, screen_id: str, hotspot_id: str, changes: Mapping[str, Any]
    ) -> None:
        screen = self.get_screen(screen_id)
        if screen is None:
            return
        index = _index_of(screen.hotspots, hotspot_id)
        if index is None:
            return
        updated = _validated(
            "hotspot",
            hotspot_id,
            lambda: apply_changes(screen.hotspots[index], changes),
        )
        if updated is None:
            return
        self._record_edit()
        screen.hotspots[index] = updated
        self._finish_active_edit()

    def delete_hotspot(self, screen_id: str, hotspot_id: str) -> None:
        screen = self.get_screen(screen_id)
        if screen is None:
            return
        index = _index_of(screen.hotspots, hotspot_id)
        if index is None:
            return
        self._record_edit()
        del screen.hotspots[index]
        self._finish_active_edit()

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------
    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    def undo(self) -> bool:
        """Restore the collection preceding the latest edit.

        Returns ``True`` when the collection changed.
        """

        restored = self.history.undo(self._projects)
        if restored is None:
            return False
        self._projects = restored
        self._write_through()
        return True

    def redo(self) -> bool:
        restored = self.history.redo()
        if restored is None:
            return False
        self._projects = restored
        self._write_through()
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _record_edit(self) -> None:
        self.history.snapshot(self._projects)

    def _finish_edit(self, project: Project) -> None:
        project.updated_at = self._clock()
        self._write_through()

    def _finish_active_edit(self) -> None:
        project = self.active_project
        if project is not None:
            self._finish_edit(project)

    def _resolve_project(self, project_id: str | None) -> Project | None:
        if project_id is None:
            return self.active_project
        return self.get_project(project_id)

    def _project_index(self, project_id: str) -> int | None:
        return _index_of(self._projects, project_id)

    def _require_adapter(self) -> PersistenceAdapter:
        if self._adapter is None:
            raise RuntimeError("DocumentStore has been closed")
        return self._adapter

    def _write_through(self) -> None:
        if self._adapter is None:
            logger.warning("Skipping write-through: store is closed")
            return

        payload = json.dumps(collection_document(self._projects), ensure_ascii=False)
        try:
            self._adapter.set(self._storage_key, payload)
        except PersistenceError:
            logger.exception(
                "Failed to persist %d projects under '%s'",
                len(self._projects),
                self._storage_key,
            )


def _validated(kind: str, item_id: str | None, build: Callable[[], _T]) -> _T | None:
    try:
        return build()
    except ValueError as exc:
        logger.warning("Rejected invalid %s edit (%s): %s", kind, item_id or "new", exc)
        return None


def _index_of(items: Sequence[Any], item_id: str) -> int | None:
    for index, item in enumerate(items):
        if item.id == item_id:
            return index
    return None


def _as_screen(screen: Screen | Mapping[str, Any]) -> Screen:
    if isinstance(screen, Screen):
        return screen
    return Screen.model_validate(screen)


def _as_hotspot(hotspot: Hotspot | Mapping[str, Any]) -> Hotspot:
    if isinstance(hotspot, Hotspot):
        return hotspot
    return Hotspot.model_validate(hotspot)


__all__ = ["DEFAULT_PROJECTS_KEY", "DocumentStore"]
