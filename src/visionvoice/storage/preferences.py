"""Persisted user preferences (reading rate, auto-read).

Stores never raise to their callers: storage failures are logged and
reported as "absent" on read and ``False`` on write, so the narration flow
always falls back to defaults.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from visionvoice.core.constants import (
    AUTO_READ_KEY,
    DEFAULT_AUTO_READ,
    DEFAULT_RATE,
    RATE_KEY,
)
from visionvoice.core.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class PreferenceStore(ABC):
    """Asynchronous key/value store."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None if absent or unreadable."""
        ...

    @abstractmethod
    async def set(self, key: str, value: Any) -> bool:
        """Store a JSON-serializable value. Returns False on failure."""
        ...


class MemoryPreferenceStore(PreferenceStore):
    """Process-local store, used when no file is configured and in tests."""

    def __init__(self, initial: Optional[dict] = None):
        self._data = dict(initial or {})

    async def get(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    async def set(self, key: str, value: Any) -> bool:
        self._data[key] = value
        return True


class JsonFilePreferenceStore(PreferenceStore):
    """Stores all keys in one JSON document; file I/O runs off the event loop."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceError(f"Unexpected content in {self.path}")
        return data

    def _write_all(self, data: dict) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            tmp_path.replace(self.path)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Cannot write {self.path}: {e}") from e

    async def get(self, key: str) -> Optional[Any]:
        try:
            async with self._lock:
                data = await asyncio.to_thread(self._read_all)
        except PersistenceError as e:
            logger.error(f"Error getting '{key}' from storage: {e}")
            return None
        return data.get(key)

    async def set(self, key: str, value: Any) -> bool:
        try:
            async with self._lock:
                try:
                    data = await asyncio.to_thread(self._read_all)
                except PersistenceError as e:
                    logger.warning(f"Replacing unreadable preferences file: {e}")
                    data = {}
                data[key] = value
                await asyncio.to_thread(self._write_all, data)
        except PersistenceError as e:
            logger.error(f"Error setting '{key}' in storage: {e}")
            return False
        return True


class NarrationPreferences:
    """Typed access to the two narration preferences."""

    def __init__(
        self,
        store: PreferenceStore,
        default_rate: float = DEFAULT_RATE,
        default_auto_read: bool = DEFAULT_AUTO_READ,
    ):
        self.store = store
        self.default_rate = default_rate
        self.default_auto_read = default_auto_read

    async def load_rate(self) -> float:
        value = await self._safe_get(RATE_KEY)
        if value is None:
            return self.default_rate
        # bool is an int subclass; a stored True is not a rate
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            logger.warning(f"Ignoring stored rate of type {type(value).__name__}")
            return self.default_rate
        try:
            return float(value)
        except ValueError:
            logger.warning(f"Ignoring unparsable stored rate: {value!r}")
            return self.default_rate

    async def save_rate(self, rate: float) -> bool:
        return await self._safe_set(RATE_KEY, float(rate))

    async def load_auto_read(self) -> bool:
        value = await self._safe_get(AUTO_READ_KEY)
        if value is None:
            return self.default_auto_read
        if not isinstance(value, bool):
            logger.warning(f"Ignoring stored auto-read value: {value!r}")
            return self.default_auto_read
        return value

    async def save_auto_read(self, enabled: bool) -> bool:
        return await self._safe_set(AUTO_READ_KEY, bool(enabled))

    async def _safe_get(self, key: str) -> Optional[Any]:
        try:
            return await self.store.get(key)
        except Exception as e:
            logger.error(f"Preference read failed for '{key}': {e}")
            return None

    async def _safe_set(self, key: str, value: Any) -> bool:
        try:
            ok = await self.store.set(key, value)
        except Exception as e:
            logger.error(f"Preference write failed for '{key}': {e}")
            return False
        if not ok:
            logger.warning(f"Preference '{key}' was not saved; keeping in-memory value.")
        return ok
