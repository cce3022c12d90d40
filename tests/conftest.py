"""Test configuration for the screen guide project."""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Iterator, Sequence

import pytest

from screenguide.models import Hotspot, HotspotAction, NoAction, Screen
from screenguide.persistence import InMemoryPersistenceAdapter
from screenguide.store import DocumentStore


class FakeClock:
    """Deterministic clock that advances by ``step`` on every call."""

    def __init__(
        self,
        start: datetime = datetime(2024, 5, 5, 12, 0, tzinfo=timezone.utc),
        step: timedelta = timedelta(seconds=1),
    ) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + self.step
        return current


def _build_hotspot(
    hotspot_id: str = "hotspot-1",
    *,
    action: HotspotAction | None = None,
    x: float = 10,
    y: float = 20,
    width: float = 30,
    height: float = 10,
    hint: str | None = None,
    is_correct: bool = True,
) -> Hotspot:
    return Hotspot(
        id=hotspot_id,
        x=x,
        y=y,
        width=width,
        height=height,
        action=action if action is not None else NoAction(),
        hint=hint,
        is_correct=is_correct,
    )


def _build_screen(
    screen_id: str = "screen-1",
    *,
    name: str = "Home",
    hotspots: Sequence[Hotspot] = (),
    order: int = 0,
    image_file: Any = None,
) -> Screen:
    return Screen(
        id=screen_id,
        name=name,
        image_url="data:image/png;base64,iVBORw0KGgo=",
        voice_guide=f"Tap the highlighted button on {name}.",
        hotspots=list(hotspots),
        order=order,
        image_file=image_file,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def adapter() -> InMemoryPersistenceAdapter:
    return InMemoryPersistenceAdapter()


@pytest.fixture()
def store(adapter: InMemoryPersistenceAdapter, clock: FakeClock) -> DocumentStore:
    return DocumentStore(adapter, clock=clock)


@pytest.fixture()
def restore_root_logger() -> Iterator[None]:
    """Undo root logger changes made by ``setup_logging``."""

    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture()
def make_screen() -> Any:
    """Factory fixture for building screens with sensible defaults."""

    return _build_screen


@pytest.fixture()
def make_hotspot() -> Any:
    """Factory fixture for building hotspots with sensible defaults."""

    return _build_hotspot


__all__ = ["FakeClock", "make_hotspot", "make_screen"]
