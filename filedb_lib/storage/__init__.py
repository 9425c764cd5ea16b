"""Record storage backends for file-db."""

from .base import StorageBackend
from .file_backend import FileStorageBackend
from .memory_backend import MemoryStorageBackend
from .serializer import create_serializer

__all__ = ["StorageBackend", "FileStorageBackend", "MemoryStorageBackend", "create_serializer"]
