"""file-db: a small durable key-value store keeping one file per key."""

from .engine import COLLECTION, PersistenceEngine, Record
from .errors import (
    AlreadyExistsError,
    DirectoryNotFoundError,
    EmptyKeyError,
    InvalidKeyError,
    NotFoundError,
    RecordDecodeError,
    StorageIOError,
    StoreError,
)
from .initializer import get_active_store, initialize, initialize_from_config

__all__ = [
    "COLLECTION",
    "PersistenceEngine",
    "Record",
    "StoreError",
    "EmptyKeyError",
    "InvalidKeyError",
    "AlreadyExistsError",
    "NotFoundError",
    "DirectoryNotFoundError",
    "StorageIOError",
    "RecordDecodeError",
    "initialize",
    "initialize_from_config",
    "get_active_store",
]
