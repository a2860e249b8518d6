"""Key-value preference stores read by the adapters."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class PreferenceStore(Protocol):
    def get_bool(self, key: str, default: bool = False) -> bool:
        ...

    def set_bool(self, key: str, value: bool) -> None:
        ...


class MemoryPreferenceStore:
    def __init__(self, values: Optional[Dict[str, Any]] = None) -> None:
        self._values: Dict[str, Any] = dict(values or {})

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self._values.get(key, default)
        return value if isinstance(value, bool) else default

    def set_bool(self, key: str, value: bool) -> None:
        self._values[key] = bool(value)


class JsonPreferenceStore:
    """Preferences persisted as one JSON object, namespaced per source."""

    def __init__(self, path: Path, namespace: str = "") -> None:
        self.path = Path(path)
        self.namespace = namespace
        self._lock = threading.Lock()

    def _key(self, key: str) -> str:
        return f"{self.namespace}.{key}" if self.namespace else key

    def _load(self) -> Dict[str, Any]:
        try:
            if self.path.exists():
                data = json.loads(self.path.read_text(encoding="utf-8"))
                if isinstance(data, dict):
                    return data
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("ignoring unreadable preferences at %s: %s", self.path, exc)
        return {}

    def get_bool(self, key: str, default: bool = False) -> bool:
        with self._lock:
            value = self._load().get(self._key(key), default)
        return value if isinstance(value, bool) else default

    def set_bool(self, key: str, value: bool) -> None:
        with self._lock:
            data = self._load()
            data[self._key(key)] = bool(value)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")


__all__ = [
    "PreferenceStore",
    "MemoryPreferenceStore",
    "JsonPreferenceStore",
]
