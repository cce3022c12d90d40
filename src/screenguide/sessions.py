"""Playback session statistics kept apart from the document history."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_serializer
from pydantic.alias_generators import to_camel

from .models import Clock, generate_id, utcnow
from .persistence import PersistenceAdapter, PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_SESSIONS_KEY = "screenguide-sessions"


class SessionRecord(BaseModel):
    """Finished playback session. Instances are frozen once created."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    id: str
    project_id: str
    project_name: str
    start_time: datetime
    end_time: datetime
    duration: int = Field(..., ge=0)
    total_screens: int = Field(..., ge=0)
    completed_screens: int = Field(..., ge=0)
    correct_clicks: int = Field(..., ge=0)
    wrong_clicks: int = Field(..., ge=0)
    completion_rate: float
    accuracy: float

    @field_serializer("start_time", "end_time")
    def _serialise_timestamp(self, value: datetime) -> str:
        return value.isoformat()


@dataclass
class ActiveSession:
    """Counters for the playback run currently in progress."""

    project_id: str
    project_name: str
    total_screens: int
    start_time: datetime
    completed_screens: int = 0
    correct_clicks: int = 0
    wrong_clicks: int = 0


@dataclass(frozen=True)
class SessionSummary:
    """Aggregate figures across a group of session records."""

    session_count: int
    average_duration: float
    average_completion_rate: float
    average_accuracy: float


class SessionTracker:
    """Record playback sessions in an append-only ledger.

    At most one session is open at a time. The ledger is written through
    ``adapter`` under its own key whenever it changes, independently of the
    project document.
    """

    def __init__(
        self,
        adapter: PersistenceAdapter,
        *,
        storage_key: str = DEFAULT_SESSIONS_KEY,
        clock: Clock = utcnow,
    ) -> None:
        self._adapter = adapter
        self._storage_key = storage_key
        self._clock = clock
        self._records: List[SessionRecord] = []
        self._current: ActiveSession | None = None

    @property
    def current_session(self) -> ActiveSession | None:
        return self._current

    def load(self) -> None:
        """Restore the ledger from the adapter, ignoring unreadable data."""

        try:
            raw = self._adapter.get(self._storage_key)
        except PersistenceError:
            logger.exception("Failed to read session history")
            return

        if raw is None:
            self._records = []
            return

        try:
            entries = json.loads(raw)
            if not isinstance(entries, list):
                raise ValueError("session history must be a list")
            self._records = [SessionRecord.model_validate(entry) for entry in entries]
        except (ValueError, ValidationError):
            logger.exception("Ignoring unreadable session history")
            self._records = []

    def start_session(
        self, project_id: str, project_name: str, total_screens: int
    ) -> ActiveSession:
        """Open a new session, discarding any unfinished one."""

        if total_screens < 0:
            raise ValueError("total_screens must be zero or a positive integer")
        if self._current is not None:
            logger.info(
                "Discarding unfinished session for project '%s'",
                self._current.project_id,
            )

        self._current = ActiveSession(
            project_id=project_id,
            project_name=project_name,
            total_screens=total_screens,
            start_time=self._clock(),
        )
        return self._current

    def record_correct_click(self) -> None:
        if self._current is None:
            return
        self._current.correct_clicks += 1
        self._current.completed_screens += 1

    def record_wrong_click(self) -> None:
        if self._current is None:
            return
        self._current.wrong_clicks += 1

    def end_session(self) -> SessionRecord | None:
        """Close the open session and append its record to the ledger."""

        session = self._current
        if session is None:
            return None

        end_time = self._clock()
        duration = int((end_time - session.start_time).total_seconds() * 1000)
        record = SessionRecord(
            id=generate_id("session"),
            project_id=session.project_id,
            project_name=session.project_name,
            start_time=session.start_time,
            end_time=end_time,
            duration=max(duration, 0),
            total_screens=session.total_screens,
            completed_screens=session.completed_screens,
            correct_clicks=session.correct_clicks,
            wrong_clicks=session.wrong_clicks,
            completion_rate=_completion_rate(
                session.completed_screens, session.total_screens
            ),
            accuracy=_accuracy(session.correct_clicks, session.wrong_clicks),
        )

        self._records.append(record)
        self._current = None
        self._persist()
        return record

    def get_history(self, project_id: str | None = None) -> List[SessionRecord]:
        return [
            record
            for record in self._records
            if project_id is None or record.project_id == project_id
        ]

    def clear_history(self) -> None:
        self._records.clear()
        try:
            self._adapter.remove(self._storage_key)
        except PersistenceError:
            logger.exception("Failed to remove persisted session history")

    def _persist(self) -> None:
        payload = json.dumps(
            [
                record.model_dump(mode="json", by_alias=True)
                for record in self._records
            ],
            ensure_ascii=False,
        )
        try:
            self._adapter.set(self._storage_key, payload)
        except PersistenceError:
            logger.exception(
                "Failed to persist %d session records", len(self._records)
            )


def summarize(records: Iterable[SessionRecord]) -> SessionSummary:
    """Return averaged figures for ``records``; all zero when empty."""

    collected: Sequence[SessionRecord] = tuple(records)
    count = len(collected)
    if count == 0:
        return SessionSummary(
            session_count=0,
            average_duration=0.0,
            average_completion_rate=0.0,
            average_accuracy=0.0,
        )

    return SessionSummary(
        session_count=count,
        average_duration=sum(record.duration for record in collected) / count,
        average_completion_rate=sum(record.completion_rate for record in collected)
        / count,
        average_accuracy=sum(record.accuracy for record in collected) / count,
    )


def _completion_rate(completed: int, total: int) -> float:
    if total == 0:
        return 0.0
    return completed * 100 / total


def _accuracy(correct: int, wrong: int) -> float:
    clicks = correct + wrong
    if clicks == 0:
        return 100.0
    return correct * 100 / clicks


__all__ = [
    "ActiveSession",
    "DEFAULT_SESSIONS_KEY",
    "SessionRecord",
    "SessionSummary",
    "SessionTracker",
    "summarize",
]
