"""Configuration helpers for the screen guide store."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .history import DEFAULT_HISTORY_LIMIT
from .sessions import DEFAULT_SESSIONS_KEY
from .store import DEFAULT_PROJECTS_KEY

DEFAULT_STORAGE_DIR = Path("~/.screenguide").expanduser()


def _normalise_path(value: str | None) -> Path | None:
    if value is None:
        return None

    trimmed = value.strip()
    if not trimmed:
        return None

    return Path(trimmed).expanduser()


def _normalise_string(value: str | None, *, default: str) -> str:
    if value is None:
        return default

    trimmed = value.strip()
    return trimmed or default


@dataclass(frozen=True)
class ScreenGuideSettings:
    """Runtime settings for the document store and session ledger.

    Values are read from environment variables so deployments can relocate
    storage without code changes. Empty strings are treated as if the variable
    was unset and paths are expanded to support ``~`` prefixes.
    """

    storage_dir: Path = DEFAULT_STORAGE_DIR
    projects_key: str = DEFAULT_PROJECTS_KEY
    sessions_key: str = DEFAULT_SESSIONS_KEY
    history_limit: int = DEFAULT_HISTORY_LIMIT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ScreenGuideSettings":
        """Return settings populated from ``environ``.

        Args:
            environ: Optional mapping of environment variables. When omitted,
                :data:`os.environ` is used.

        Raises:
            ValueError: If ``SCREENGUIDE_HISTORY_LIMIT`` is not an integer of
                at least 2.
        """

        source = environ if environ is not None else os.environ

        storage_dir = _normalise_path(source.get("SCREENGUIDE_STORAGE_DIR"))
        projects_key = _normalise_string(
            source.get("SCREENGUIDE_PROJECTS_KEY"), default=DEFAULT_PROJECTS_KEY
        )
        sessions_key = _normalise_string(
            source.get("SCREENGUIDE_SESSIONS_KEY"), default=DEFAULT_SESSIONS_KEY
        )
        log_level = _normalise_string(
            source.get("SCREENGUIDE_LOG_LEVEL"), default="INFO"
        ).upper()

        history_limit = DEFAULT_HISTORY_LIMIT
        limit_raw = source.get("SCREENGUIDE_HISTORY_LIMIT")
        if limit_raw is not None and limit_raw.strip():
            try:
                history_limit = int(limit_raw.strip())
            except ValueError as exc:
                raise ValueError(
                    "SCREENGUIDE_HISTORY_LIMIT must be an integer of at least 2."
                ) from exc
            if history_limit < 2:
                raise ValueError("SCREENGUIDE_HISTORY_LIMIT must be at least 2.")

        return cls(
            storage_dir=storage_dir or DEFAULT_STORAGE_DIR,
            projects_key=projects_key,
            sessions_key=sessions_key,
            history_limit=history_limit,
            log_level=log_level,
        )


__all__ = ["DEFAULT_STORAGE_DIR", "ScreenGuideSettings"]
