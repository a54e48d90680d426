"""
Key-Value Stores: session-scoped and durable storage for the widget.
=====================================================================

The widget needs two narrow stores, both injected:

* session store: lives for one visit (sessionStorage in a browser).
  Holds the session-submitted flag.
* durable store: survives visits (localStorage in a browser).
  Holds the client id.

MemoryStore serves as either. JsonFileStore persists a durable store to disk
with atomic writes (tmp + fsync + rename).
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    """In-process store. One instance per scope."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = str(value)

    def clear(self) -> None:
        self._data.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


class JsonFileStore:
    """Durable store backed by a JSON file with atomic writes."""

    def __init__(self, path: str):
        self._path = Path(path)
        self._data: Dict[str, str] = {}
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> None:
        if not self._path.exists():
            logger.info("No store file at %s, starting empty", self._path)
            return
        try:
            raw = json.loads(self._path.read_text())
        except (OSError, ValueError) as e:
            logger.error("Failed to load %s: %s, starting empty", self._path, e)
            return
        if not isinstance(raw, dict):
            logger.warning("Store file %s is not an object, starting empty", self._path)
            return
        self._data = {str(k): str(v) for k, v in raw.items()}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = str(value)
        self.save()

    def save(self) -> None:
        """Atomic write: tmp → fsync → rename."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self._path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(self._data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, str(self._path))
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
