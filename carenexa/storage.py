"""Key-value storage abstraction for the process-local state (pins, rate limits).

Everything that needs shared mutable state talks to a ``KeyValueStore``, so a
real datastore can be dropped in without touching the scoring logic.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional, Protocol, Tuple


class KeyValueStore(Protocol):
    def get(self, key: str, default: Optional[Any] = None) -> Any: ...

    def put(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> bool: ...

    def scan(self, prefix: str = "") -> List[Tuple[str, Any]]: ...


class InMemoryStore:
    """Dict-backed store. Single process only; replace with Redis/DB in production."""

    def __init__(self) -> None:
        self._data: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def put(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def scan(self, prefix: str = "") -> List[Tuple[str, Any]]:
        """Return (key, value) pairs in insertion order."""
        with self._lock:
            return [(k, v) for k, v in self._data.items() if k.startswith(prefix)]
