"""Keyed persistence for the dashboard state.

Every piece of state (transactions, settings, debts, streaks, ...) is stored
independently under a string key. Engines accept any object with
``get``/``set``/``remove``/``keys`` so tests can use :class:`MemoryStore`
while the application uses :class:`JsonFileStore`.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from . import config

logger = logging.getLogger(__name__)

TRANSACTIONS_KEY = 'finance-transactions'
IMPORT_HISTORY_KEY = 'finance-import-history'
SETTINGS_KEY = 'finance-settings'
DEBT_KEY = 'finance-debt'
DEBT_HISTORY_KEY = 'finance-debt-history'
INCOME_KEY = 'finance-income'
CELEBRATED_KEY = 'celebrated-milestones'
MILESTONES_KEY = 'finance-milestones'
STREAKS_KEY = 'finance-streaks'

STORAGE_KEYS = (
    TRANSACTIONS_KEY,
    IMPORT_HISTORY_KEY,
    SETTINGS_KEY,
    DEBT_KEY,
    DEBT_HISTORY_KEY,
    INCOME_KEY,
    CELEBRATED_KEY,
    MILESTONES_KEY,
    STREAKS_KEY,
)


class MemoryStore:
    """In-memory store; values are deep-copied in and out."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return copy.deepcopy(default)
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data)

    def raw(self, key: str) -> Optional[str]:
        """Serialized form of ``key``, used for size reporting."""
        if key not in self._data:
            return None
        return json.dumps(self._data[key])


class JsonFileStore:
    """One JSON file per key inside ``directory``."""

    def __init__(self, directory: Optional[Path] = None):
        self.directory = Path(directory) if directory is not None else config.DATA_DIR
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str, default: Any = None) -> Any:
        path = self._path(key)
        if not path.exists():
            return copy.deepcopy(default)
        try:
            with path.open('r', encoding='utf-8') as handle:
                return json.load(handle)
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Could not read %s, using default: %s", path, exc)
            return copy.deepcopy(default)

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as handle:
                json.dump(value, handle, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def remove(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()

    def keys(self) -> List[str]:
        return sorted(p.stem for p in self.directory.glob('*.json'))

    def raw(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding='utf-8')


def update(store, key: str, default: Any, func: Callable[[Any], Any]) -> Any:
    """Read ``key``, apply ``func`` and write the result back."""
    value = func(store.get(key, default))
    store.set(key, value)
    return value
