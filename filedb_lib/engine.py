"""Persistence engine: durable CRUD over string-keyed string records.

The engine owns one storage directory and one fixed collection
(`record`). Each key is persisted as its own record through a
`StorageBackend`; the default backend writes one JSON file per key.

Existence is derived from the read path: a key exists exactly when
`read` succeeds. There is no separate index that could drift from the
record files.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from pathlib import Path
from threading import RLock
from typing import Any, List, Mapping, Optional

from filedb_lib.errors import (
    AlreadyExistsError,
    DirectoryNotFoundError,
    EmptyKeyError,
    InvalidKeyError,
    NotFoundError,
    RecordDecodeError,
    StorageIOError,
)
from filedb_lib.storage.file_backend import FileStorageBackend
from filedb_lib.storage.interfaces import StorageProtocol
from filedb_lib.storage.serializer import Serializer

logger = logging.getLogger(__name__)

COLLECTION = "record"


@dataclass(frozen=True)
class Record:
    value: str

    def to_dict(self) -> dict:
        return {"Value": self.value}

    @classmethod
    def from_dict(cls, payload: Any) -> "Record":
        if not isinstance(payload, Mapping):
            raise RecordDecodeError("record payload is not a mapping")
        value = payload.get("Value")
        if not isinstance(value, str):
            raise RecordDecodeError("record has no string 'Value' field")
        return cls(value)


def _check_key(key: Any) -> None:
    if not isinstance(key, str):
        raise TypeError(f"key must be str, not {type(key).__name__}")
    if key == "":
        raise EmptyKeyError()
    try:
        key.encode("utf-8")
    except UnicodeEncodeError:
        raise InvalidKeyError("key is not valid UTF-8 text") from None


def _check_value(value: Any) -> None:
    if not isinstance(value, str):
        raise TypeError(f"value must be str, not {type(value).__name__}")
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        raise ValueError("value is not valid UTF-8 text") from None


class PersistenceEngine:
    """Create/read/update/delete string values stored under string keys.

    Parameters
    - directory: existing storage root. The engine never creates it.
    - backend: optional record backend; defaults to a `FileStorageBackend`
      rooted at `directory` using `serializer` and `fsync`.

    All mutating operations run under one per-collection lock, and each
    performs its existence check and its write inside the same critical
    section. Reads never take the lock; atomic record writes keep them
    from observing partial state.
    """

    def __init__(
        self,
        directory: str | Path,
        backend: Optional[StorageProtocol] = None,
        serializer: Optional[Serializer] = None,
        fsync: bool = True,
    ) -> None:
        self.directory = Path(directory)
        if not self.directory.is_dir():
            raise DirectoryNotFoundError(self.directory)
        if backend is None:
            backend = FileStorageBackend(self.directory, serializer=serializer, fsync=fsync)
        elif not isinstance(backend, StorageProtocol):
            raise TypeError(f"{type(backend).__name__} does not implement the storage protocol")
        self.backend = backend
        self._lock = RLock()

    def create_if_non_existent_else_update(self, key: str, value: str) -> None:
        """Store `value` under `key`, creating the record if it is absent."""
        _check_key(key)
        _check_value(value)
        with self._lock:
            if self._exists(key):
                self.update(key, value)
            else:
                self.create(key, value)

    upsert = create_if_non_existent_else_update

    def create(self, key: str, value: str) -> None:
        _check_key(key)
        _check_value(value)
        with self._lock:
            if self._exists(key):
                raise AlreadyExistsError(key)
            self._write(key, value)
        logger.debug("Created record %r", key)

    def read(self, key: str) -> str:
        """Return the value stored for `key`.

        Raises `NotFoundError` when the record is missing or can't be
        decoded; other I/O faults propagate as `StorageIOError`.
        """
        _check_key(key)
        try:
            payload = self.backend.load(COLLECTION, key)
            return Record.from_dict(payload).value
        except (KeyError, RecordDecodeError) as exc:
            raise NotFoundError(key) from exc

    def update(self, key: str, value: str) -> None:
        _check_key(key)
        _check_value(value)
        with self._lock:
            if not self._exists(key):
                raise NotFoundError(key)
            self._write(key, value)
        logger.debug("Updated record %r", key)

    def delete(self, key: str) -> None:
        _check_key(key)
        with self._lock:
            if not self._exists(key):
                raise NotFoundError(key)
            try:
                self.backend.delete(COLLECTION, key)
            except KeyError as exc:
                raise NotFoundError(key) from exc
        logger.debug("Deleted record %r", key)

    def keys(self) -> List[str]:
        """Return all stored keys, sorted."""
        return sorted(self.backend.list_keys(COLLECTION))

    def __contains__(self, key: object) -> bool:
        _check_key(key)
        return self._exists(key)  # type: ignore[arg-type]

    def _exists(self, key: str) -> bool:
        try:
            self.read(key)
        except (NotFoundError, StorageIOError):
            return False
        return True

    def _write(self, key: str, value: str) -> None:
        self.backend.save(COLLECTION, key, Record(value).to_dict())

    def __repr__(self) -> str:
        return f"PersistenceEngine({str(self.directory)!r})"
