"""Storage backend interface definitions.

Defines the StorageBackend abstract class the persistence engine writes
records through. A record is handed to the backend as a plain mapping;
implementations decide how it is encoded.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping


class StorageBackend(ABC):
    """Abstract durable record backend.

    `save` must be atomic from a reader's point of view: a concurrent
    `load` sees either the previous record or the new one, never a partial
    write. Existence is not part of this interface; callers derive it from
    `load`.
    """

    @abstractmethod
    def save(self, namespace: str, key: str, record: Mapping[str, Any]) -> None:
        """Durably write `record` under `namespace`/`key`.

        Raises `StorageIOError` when the write fails.
        """

    @abstractmethod
    def load(self, namespace: str, key: str) -> Any:
        """Load and return the record stored under `namespace`/`key`.

        Raises `KeyError` if the key does not exist and `RecordDecodeError`
        if it exists but cannot be decoded.
        """

    @abstractmethod
    def delete(self, namespace: str, key: str) -> None:
        """Delete the stored record. Raise `KeyError` if not found."""

    @abstractmethod
    def list_keys(self, namespace: str) -> Iterable[str]:
        """Return an iterable of keys stored in `namespace`."""

    def configure(self, **options: Any) -> None:
        """Apply runtime options. Backends without options ignore them."""
        return
