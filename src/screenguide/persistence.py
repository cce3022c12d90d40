"""Key-value persistence adapters used for write-through storage."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List


class PersistenceError(RuntimeError):
    """Raised when an adapter cannot read or write a stored value."""


class PersistenceAdapter(ABC):
    """Interface describing a synchronous string blob store."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the value stored under ``key`` or ``None`` when absent.

        Raises:
            PersistenceError: If the stored value cannot be read.
        """

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value.

        Raises:
            PersistenceError: If the value cannot be written.
        """

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove the value stored under ``key`` if it exists."""

    @abstractmethod
    def keys(self) -> List[str]:
        """Return every key currently held by the adapter."""


class InMemoryPersistenceAdapter(PersistenceAdapter):
    """Keep values in local process memory.

    Setting ``fail_writes`` makes every :meth:`set` call raise
    :class:`PersistenceError`, which mimics a full storage quota.
    """

    def __init__(self, *, fail_writes: bool = False) -> None:
        self._values: Dict[str, str] = {}
        self.fail_writes = fail_writes

    def get(self, key: str) -> str | None:
        return self._values.get(_validate_key(key))

    def set(self, key: str, value: str) -> None:
        validated = _validate_key(key)
        if self.fail_writes:
            raise PersistenceError(f"Storage quota exceeded while writing '{key}'")
        self._values[validated] = value

    def remove(self, key: str) -> None:
        self._values.pop(_validate_key(key), None)

    def keys(self) -> List[str]:
        return sorted(self._values.keys())


class FilePersistenceAdapter(PersistenceAdapter):
    """Persist each key as a UTF-8 JSON file inside ``storage_dir``."""

    def __init__(self, storage_dir: Path) -> None:
        self.storage_dir = Path(storage_dir)
        try:
            self.storage_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(
                f"Failed to prepare storage directory '{self.storage_dir}'."
            ) from exc

    def get(self, key: str) -> str | None:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(f"Failed to read '{path}'.") from exc

    def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        try:
            path.write_text(value, encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(f"Failed to write '{path}'.") from exc

    def remove(self, key: str) -> None:
        path = self._path_for(key)
        if not path.exists():
            return
        try:
            path.unlink()
        except OSError as exc:
            raise PersistenceError(f"Failed to delete '{path}'.") from exc

    def keys(self) -> List[str]:
        return sorted(
            path.stem for path in self.storage_dir.glob("*.json") if path.is_file()
        )

    def _path_for(self, key: str) -> Path:
        return self.storage_dir / f"{_validate_key(key)}.json"


def _validate_key(key: str) -> str:
    if not isinstance(key, str):
        raise TypeError("key must be a string")
    stripped = key.strip()
    if not stripped:
        raise ValueError("key must be a non-empty string")
    if "/" in stripped or "\\" in stripped:
        raise ValueError("key must not contain path separators")
    return stripped


__all__ = [
    "FilePersistenceAdapter",
    "InMemoryPersistenceAdapter",
    "PersistenceAdapter",
    "PersistenceError",
]
