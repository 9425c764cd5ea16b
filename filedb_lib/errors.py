"""Error taxonomy for the file-db store.

Every failure a caller can branch on has its own class so create/update
decisions can be made purely from the error kind.
"""
from __future__ import annotations
from pathlib import Path
from typing import Optional


class StoreError(Exception):
    """Base class for all store errors."""


class InvalidKeyError(StoreError, ValueError):
    """Key can't be stored, e.g. it isn't valid Unicode text."""

    def __init__(self, message: str = "Invalid key") -> None:
        super().__init__(message)


class EmptyKeyError(InvalidKeyError):
    def __init__(self) -> None:
        super().__init__("Empty string given as key")


class AlreadyExistsError(StoreError):
    def __init__(self, key: str) -> None:
        super().__init__(f"Record {key!r} already exists")
        self.key = key


class NotFoundError(StoreError, KeyError):
    """Raised when a record is absent or unreadable.

    Subclasses `KeyError` so callers written against the backend contract
    keep working.
    """

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Record {self.key!r} not found"


class DirectoryNotFoundError(StoreError, FileNotFoundError):
    def __init__(self, path: str | Path) -> None:
        super().__init__(f"Storage directory doesn't exist: {path}")
        self.path = Path(path)


class StorageIOError(StoreError):
    """Underlying I/O fault while touching a record file."""

    def __init__(self, message: str, key: Optional[str] = None) -> None:
        super().__init__(message)
        self.key = key


class RecordDecodeError(StorageIOError):
    """A record exists on disk but cannot be decoded."""
