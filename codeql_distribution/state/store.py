"""Persistent key-value state for the CodeQL distribution manager.

Holds the installed-release record, the storage folder index and the
update-check rate limiter timestamp. Components receive a store instead
of reaching for global state, so tests can pass a MemoryStateStore.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger("codeql_distribution.state")


class StateStore:
    """
    Key-value store interface.

    Values must be JSON-serializable. ``update`` with ``None`` removes the
    key. ``modify`` performs an atomic read-modify-write.
    """

    def __init__(self):
        self._lock = threading.RLock()

    def _read(self) -> Dict[str, Any]:
        raise NotImplementedError

    def _write(self, data: Dict[str, Any]) -> None:
        raise NotImplementedError

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under ``key`` or ``default``."""
        with self._lock:
            return self._read().get(key, default)

    def update(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``; ``None`` deletes the key."""
        with self._lock:
            data = self._read()
            if value is None:
                data.pop(key, None)
            else:
                data[key] = value
            self._write(data)

    def modify(self, key: str, func: Callable[[Any], Any], default: Any = None) -> Any:
        """
        Atomically replace the value under ``key`` with ``func(old)``.

        Returns:
            The new value
        """
        with self._lock:
            data = self._read()
            value = func(data.get(key, default))
            if value is None:
                data.pop(key, None)
            else:
                data[key] = value
            self._write(data)
            return value

    def increment(self, key: str, default: int = 0) -> int:
        """Atomically add one to an integer value and return the result."""
        return self.modify(key, lambda old: int(old) + 1, default)


class MemoryStateStore(StateStore):
    """Store that lives only as long as the process."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        super().__init__()
        self._data: Dict[str, Any] = dict(initial or {})

    def _read(self) -> Dict[str, Any]:
        return dict(self._data)

    def _write(self, data: Dict[str, Any]) -> None:
        self._data = dict(data)


class JsonStateStore(StateStore):
    """Store persisted as a JSON object in a single file."""

    def __init__(self, state_path: Path):
        """
        Initialize the store.

        Args:
            state_path: JSON file holding the state (created on first write)
        """
        super().__init__()
        self._state_path = Path(state_path)

    @property
    def state_path(self) -> Path:
        """Path to the state file."""
        return self._state_path

    def _read(self) -> Dict[str, Any]:
        if not self._state_path.exists():
            return {}
        try:
            with open(self._state_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Ignoring unreadable state file {self._state_path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed state file {self._state_path}")
            return {}
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        self._state_path.parent.mkdir(parents=True, exist_ok=True)

        # Write to a sibling file and rename so readers never see half a file
        fd, tmp_name = tempfile.mkstemp(
            prefix=self._state_path.name, suffix=".tmp", dir=self._state_path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, self._state_path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
