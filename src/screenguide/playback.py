"""Viewer-side state for clicking through a project."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from .models import Clock, Project, utcnow


@dataclass
class PlaybackState:
    """Track where the viewer is within a project.

    * ``current_screen_id`` – the screen being shown, or ``None`` once the
      run has finished or before it starts.
    * ``show_hint`` – whether hotspot hints are visible.
    * ``completed_screens`` – screens left through a navigate action, in order.
    * ``start_time`` – when the first screen was shown.

    The state is not part of the document history and undo never touches it.
    """

    current_screen_id: str | None = None
    show_hint: bool = True
    completed_screens: List[str] = field(default_factory=list)
    start_time: datetime | None = None
    clock: Clock = field(default=utcnow, repr=False, compare=False)

    def start(self, project: Project) -> str | None:
        """Reset and position playback on the first screen of ``project``."""

        self.reset()
        if not project.screens:
            return None
        self.set_current_screen(project.screens[0].id)
        return self.current_screen_id

    def set_current_screen(self, screen_id: str | None) -> None:
        self.current_screen_id = screen_id
        if self.start_time is None:
            self.start_time = self.clock()

    def toggle_hint(self) -> bool:
        self.show_hint = not self.show_hint
        return self.show_hint

    def complete_screen(self, screen_id: str) -> None:
        self.completed_screens.append(screen_id)

    def reset(self) -> None:
        self.current_screen_id = None
        self.show_hint = True
        self.completed_screens = []
        self.start_time = None


__all__ = ["PlaybackState"]
