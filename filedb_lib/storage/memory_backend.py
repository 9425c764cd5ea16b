"""Simple memory-backed record storage

This backend keeps serialized records in memory as `[<namespace>][<key>]`.
Records are stored as bytes so callers never share mutable state with the
store, and a save replaces the whole entry under the lock.
"""
from threading import RLock
from typing import Any, Dict, Iterable, Mapping

from .base import StorageBackend
from .serializer import JSONSerializer, Serializer


class MemoryStorageBackend(StorageBackend):
    def __init__(self, serializer: Serializer | None = None):
        self._lock = RLock()
        self._store: Dict[str, Dict[str, bytes]] = {}
        self.serializer: Serializer = serializer or JSONSerializer()

    def save(self, namespace: str, key: str, record: Mapping[str, Any]) -> None:
        data = self.serializer.dump(dict(record))
        with self._lock:
            self._store.setdefault(namespace, {})[key] = data

    def load(self, namespace: str, key: str) -> Any:
        with self._lock:
            data = self._store.get(namespace, {}).get(key)
        if data is None:
            raise KeyError(key)
        return self.serializer.load(data)

    def delete(self, namespace: str, key: str) -> None:
        with self._lock:
            ns = self._store.get(namespace, {})
            if key not in ns:
                raise KeyError(key)
            del ns[key]

    def list_keys(self, namespace: str) -> Iterable[str]:
        with self._lock:
            return list(self._store.get(namespace, {}).keys())
