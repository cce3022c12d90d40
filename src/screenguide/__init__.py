"""Document store for guided, screenshot-based app simulations."""

from .history import DEFAULT_HISTORY_LIMIT, HistoryManager
from .models import (
    Hotspot,
    HotspotAction,
    InputAction,
    MapAction,
    MapCoordinates,
    MessageAction,
    NavigateAction,
    NoAction,
    Project,
    Screen,
    VibrateAction,
    clone_hotspot,
    clone_project,
    clone_screen,
    generate_id,
)
from .persistence import (
    FilePersistenceAdapter,
    InMemoryPersistenceAdapter,
    PersistenceAdapter,
    PersistenceError,
)
from .playback import PlaybackState
from .serializer import (
    DirectoryExportSink,
    ExportResult,
    ExportSink,
    ImportResult,
    MemoryExportSink,
    Serializer,
)
from .sessions import SessionRecord, SessionSummary, SessionTracker, summarize
from .settings import ScreenGuideSettings
from .store import DocumentStore

__all__ = [
    "DEFAULT_HISTORY_LIMIT",
    "DirectoryExportSink",
    "DocumentStore",
    "ExportResult",
    "ExportSink",
    "FilePersistenceAdapter",
    "HistoryManager",
    "Hotspot",
    "HotspotAction",
    "ImportResult",
    "InMemoryPersistenceAdapter",
    "InputAction",
    "MapAction",
    "MapCoordinates",
    "MemoryExportSink",
    "MessageAction",
    "NavigateAction",
    "NoAction",
    "PersistenceAdapter",
    "PersistenceError",
    "PlaybackState",
    "Project",
    "Screen",
    "ScreenGuideSettings",
    "Serializer",
    "SessionRecord",
    "SessionSummary",
    "SessionTracker",
    "VibrateAction",
    "clone_hotspot",
    "clone_project",
    "clone_screen",
    "generate_id",
    "summarize",
]
