"""Portable JSON export and import of projects."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Protocol

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .models import (
    Clock,
    Project,
    collection_document,
    generate_id,
    project_document,
    rekey_project,
    utcnow,
)
from .store import DocumentStore

logger = logging.getLogger(__name__)

INVALID_PROJECT_FILE = "This is not a valid project file."
UNREADABLE_DOCUMENT = "Could not read the JSON document."
NOTHING_TO_EXPORT = "There are no projects to export."

_REKEYED_FIELDS = frozenset(
    {"id", "createdAt", "created_at", "updatedAt", "updated_at"}
)


class ExportSink(Protocol):
    """Destination for exported documents, such as a browser download."""

    def save(self, filename: str, content: str) -> None:
        """Deliver ``content`` under the suggested ``filename``."""


class DirectoryExportSink:
    """Write exported documents into ``directory``."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def save(self, filename: str, content: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        (self.directory / filename).write_text(content, encoding="utf-8")


class MemoryExportSink:
    """Collect exported documents in a dictionary keyed by filename."""

    def __init__(self) -> None:
        self.files: Dict[str, str] = {}

    def save(self, filename: str, content: str) -> None:
        self.files[filename] = content


@dataclass(frozen=True)
class ExportResult:
    success: bool
    filename: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class ImportResult:
    success: bool
    project_ids: tuple[str, ...] = field(default_factory=tuple)
    error: str | None = None


class _ProjectEnvelope(BaseModel):
    """Top-level shape every imported project must have.

    Screens are only required to be a list here; their contents are checked
    when the project itself is built.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    screens: List[Any]

    @field_validator("id", "name")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must be a non-empty string")
        return value


class _CollectionEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    projects: List[Any]


class Serializer:
    """Convert projects to portable documents and back.

    Imported projects always receive a new project id and fresh timestamps.
    Screen and hotspot ids are kept as they appear in the document unless
    ``regenerate_nested_ids`` is set, in which case they are replaced the same
    way :meth:`DocumentStore.duplicate_project` replaces them.
    """

    def __init__(
        self,
        store: DocumentStore,
        sink: ExportSink | None = None,
        *,
        regenerate_nested_ids: bool = False,
        clock: Clock = utcnow,
    ) -> None:
        self._store = store
        self._sink: ExportSink = sink if sink is not None else MemoryExportSink()
        self._regenerate_nested_ids = regenerate_nested_ids
        self._clock = clock

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------
    def export_project(self, project_id: str) -> ExportResult:
        project = self._store.get_project(project_id)
        if project is None:
            logger.error("Cannot export unknown project '%s'", project_id)
            return ExportResult(
                success=False, error=f"Project '{project_id}' not found."
            )

        filename = f"{_safe_filename(project.name)}_{self._timestamp()}.json"
        return self._deliver(filename, project_document(project))

    def export_all(self) -> ExportResult:
        projects = self._store.projects
        if not projects:
            return ExportResult(success=False, error=NOTHING_TO_EXPORT)

        filename = f"screenguide_projects_{self._timestamp()}.json"
        return self._deliver(filename, collection_document(projects))

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------
    def import_project(self, document: str) -> ImportResult:
        payload = _parse(document)
        if payload is None:
            return ImportResult(success=False, error=UNREADABLE_DOCUMENT)

        project = self._build_project(payload)
        if project is None:
            return ImportResult(success=False, error=INVALID_PROJECT_FILE)

        self._store.append_projects([project])
        logger.info("Imported project '%s' as '%s'", payload.get("id"), project.id)
        return ImportResult(success=True, project_ids=(project.id,))

    def import_projects(self, document: str) -> ImportResult:
        """Import every project of a ``{"projects": [...]}`` document.

        The batch is all or nothing: one invalid entry rejects the document.
        """

        payload = _parse(document)
        if payload is None:
            return ImportResult(success=False, error=UNREADABLE_DOCUMENT)

        try:
            envelope = _CollectionEnvelope.model_validate(payload)
        except ValidationError:
            logger.warning("Rejected project collection without a projects list")
            return ImportResult(success=False, error=INVALID_PROJECT_FILE)

        projects: List[Project] = []
        for entry in envelope.projects:
            project = self._build_project(entry)
            if project is None:
                return ImportResult(success=False, error=INVALID_PROJECT_FILE)
            projects.append(project)

        self._store.append_projects(projects)
        logger.info("Imported %d projects", len(projects))
        return ImportResult(
            success=True, project_ids=tuple(project.id for project in projects)
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _build_project(self, payload: Any) -> Project | None:
        try:
            _ProjectEnvelope.model_validate(payload)
        except ValidationError as exc:
            logger.warning("Rejected project document: %s", exc.errors())
            return None

        now = self._clock()
        data = {
            key: value for key, value in payload.items() if key not in _REKEYED_FIELDS
        }
        data.update(id=generate_id("project"), created_at=now, updated_at=now)
        try:
            project = Project.model_validate(data)
        except ValidationError as exc:
            logger.warning("Rejected project with malformed screens: %s", exc.errors())
            return None

        if self._regenerate_nested_ids:
            project = rekey_project(project, nested=True, clock=self._clock)
        return project

    def _deliver(self, filename: str, document: Dict[str, Any]) -> ExportResult:
        content = json.dumps(document, indent=2, ensure_ascii=False)
        try:
            self._sink.save(filename, content)
        except OSError:
            logger.exception("Failed to save export '%s'", filename)
            return ExportResult(success=False, error=f"Could not save '{filename}'.")
        return ExportResult(success=True, filename=filename)

    def _timestamp(self) -> int:
        return int(self._clock().timestamp() * 1000)


def _parse(document: str) -> Any:
    try:
        return json.loads(document)
    except (TypeError, ValueError):
        logger.warning("Import document is not valid JSON")
        return None


def _safe_filename(name: str) -> str:
    return re.sub(r"\W", "_", name)


__all__ = [
    "DirectoryExportSink",
    "ExportResult",
    "ExportSink",
    "ImportResult",
    "MemoryExportSink",
    "Serializer",
]
