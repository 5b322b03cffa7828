"""Durable key/value storage for operator-wide alert state.

The unacknowledged alert count and the sound flag outlive any single view.
They are kept behind a small ``KeyValueStorage`` protocol so views receive
the store explicitly instead of reaching into ambient storage.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from tripwatch._constants import ALERT_COUNT_KEY, SOUND_ENABLED_KEY, STORAGE_KEYS
from tripwatch.exceptions import TripwatchStorageError

_logger = logging.getLogger(__name__)


class KeyValueStorage(Protocol):
    """String-to-string persistence surviving view reloads."""

    def get_item(self, key: str) -> str | None:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...


class MemoryStorage:
    """Process-local storage; values live as long as the object."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value


_DEFAULT_STORAGE = MemoryStorage()


def default_storage() -> MemoryStorage:
    """Process-wide storage used by clients that are given none.

    Every view in the process reads and writes the same counter, so a view
    created later (a remount) starts from the current count.
    """
    return _DEFAULT_STORAGE


class JsonFileStorage:
    """Storage backed by a small JSON object on disk.

    Writes replace the file atomically. A missing, unreadable or corrupt
    file reads as empty.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError:
            _logger.debug("Could not read storage file %s", self._path, exc_info=True)
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            _logger.debug("Storage file %s is not valid JSON", self._path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def get_item(self, key: str) -> str | None:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(data, handle, sort_keys=True)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise TripwatchStorageError(f"Could not write {self._path}: {exc}") from exc


def _parse_count(raw: str | None) -> int:
    if raw is None:
        return 0
    try:
        value = int(raw.strip())
    except ValueError:
        return 0
    return value if value > 0 else 0


class AlertCounterStore:
    """Typed access to the durable alert counter and sound flag.

    This is the source of truth for both values; any in-memory copy held by
    a view is a cache.
    """

    def __init__(self, storage: KeyValueStorage | None = None) -> None:
        self._storage: KeyValueStorage = storage if storage is not None else MemoryStorage()

    @property
    def storage(self) -> KeyValueStorage:
        return self._storage

    def get(self, key: str) -> Any:
        """Read one of the fixed keys as its typed value."""
        if key == ALERT_COUNT_KEY:
            return self.get_alert_count()
        if key == SOUND_ENABLED_KEY:
            return self.get_sound_enabled()
        raise KeyError(key)

    def set(self, key: str, value: Any) -> None:
        """Write one of the fixed keys from its typed value."""
        if key not in STORAGE_KEYS:
            raise KeyError(key)
        if key == ALERT_COUNT_KEY:
            self.set_alert_count(int(value))
        else:
            self.set_sound_enabled(bool(value))

    def get_alert_count(self) -> int:
        """Current unacknowledged alert count; garbage reads as zero."""
        return _parse_count(self._storage.get_item(ALERT_COUNT_KEY))

    def set_alert_count(self, count: int) -> None:
        if count < 0:
            raise ValueError(f"alert count must be >= 0, got {count}")
        self._storage.set_item(ALERT_COUNT_KEY, str(count))

    def increment_alert_count(self) -> int:
        count = self.get_alert_count() + 1
        self.set_alert_count(count)
        return count

    def get_sound_enabled(self) -> bool:
        return self._storage.get_item(SOUND_ENABLED_KEY) != "false"

    def set_sound_enabled(self, enabled: bool) -> None:
        self._storage.set_item(SOUND_ENABLED_KEY, "true" if enabled else "false")
