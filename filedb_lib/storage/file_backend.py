"""File-backed record storage.

This backend stores one record per file under
`<data_dir>/<namespace>/<encoded-key><extension>`. It provides atomic
writes by writing to a temporary file in the same directory and then
renaming it over the target.

Keys are escaped so that two different keys never name the same file,
even on case-insensitive or normalization-insensitive file systems.
Keys whose escaped form would be too long for a filename are stored
under a digest of the key instead; such records carry the key itself in
a `Key` field so it can be listed again.
"""
from __future__ import annotations
import errno
import hashlib
import logging
import os
import tempfile
import unicodedata
from pathlib import Path
from typing import Any, Iterable, Mapping
from urllib.parse import unquote

from filedb_lib.errors import DirectoryNotFoundError, RecordDecodeError, StorageIOError
from .base import StorageBackend
from .serializer import JSONSerializer, Serializer, create_serializer

logger = logging.getLogger(__name__)

# Leaves room for the extension within the usual 255 byte NAME_MAX.
MAX_STEM_BYTES = 200
HASHED_PREFIX = "#"
KEY_FIELD = "Key"

_ESCAPED = frozenset('/\\%<>:"|?*#')


def _is_literal(ch: str, first: bool) -> bool:
    if ch in _ESCAPED or (first and ch == "."):
        return False
    if not ch.isprintable():
        return False
    # Only characters that are their own case fold stay literal.
    if ch != ch.lower() or ch.upper().lower() != ch:
        return False
    # Combining marks and composable jamo could merge with a neighbour
    # under Unicode normalization.
    if unicodedata.category(ch).startswith("M") or unicodedata.normalize("NFC", ch) != ch:
        return False
    return not ("\u1100" <= ch <= "\u11ff")


def encode_key(key: str) -> str:
    """Map a key to a filename stem that is safe on any file system.

    Separators, `%`, control characters, a leading dot and every
    character that changes under case folding or normalization are
    percent-encoded (upper-case hex). Everything else, including
    printable non-ASCII text, is kept as is. Stems longer than
    `MAX_STEM_BYTES` are replaced by `#<sha256 of key>`.
    """
    parts = []
    for i, ch in enumerate(key):
        if _is_literal(ch, i == 0):
            parts.append(ch)
        else:
            parts.append("".join(f"%{b:02X}" for b in ch.encode("utf-8")))
    stem = "".join(parts)
    if len(stem.encode("utf-8")) > MAX_STEM_BYTES:
        return HASHED_PREFIX + hashlib.sha256(key.encode("utf-8")).hexdigest()
    return stem


def is_hashed_stem(stem: str) -> bool:
    return stem.startswith(HASHED_PREFIX)


def decode_key(stem: str) -> str:
    if is_hashed_stem(stem):
        raise ValueError(f"{stem!r} is a digest; the key is stored in the record")
    return unquote(stem)


def _name_too_long(exc: OSError) -> bool:
    return exc.errno == errno.ENAMETOOLONG


class FileStorageBackend(StorageBackend):
    def __init__(
        self,
        data_dir: str | Path,
        serializer: Serializer | None = None,
        fsync: bool = True,
    ) -> None:
        self.data_dir = Path(data_dir)
        if not self.data_dir.is_dir():
            raise DirectoryNotFoundError(self.data_dir)
        self.serializer: Serializer = serializer or JSONSerializer()
        self.fsync = fsync

    @property
    def extension(self) -> str:
        return self.serializer.extension

    def _ns_dir(self, namespace: str) -> Path:
        return self.data_dir / namespace

    def _path_for(self, namespace: str, key: str) -> Path:
        return self._ns_dir(namespace) / f"{encode_key(key)}{self.extension}"

    def save(self, namespace: str, key: str, record: Mapping[str, Any]) -> None:
        payload = dict(record)
        path = self._path_for(namespace, key)
        if is_hashed_stem(path.name):
            payload[KEY_FIELD] = key
        data = self.serializer.dump(payload)
        ns = self._ns_dir(namespace)
        try:
            ns.mkdir(exist_ok=True)
            fd, tmp = tempfile.mkstemp(prefix=".", suffix=".tmp", dir=ns)
        except OSError as exc:
            raise StorageIOError(f"Can't prepare write for {key!r}: {exc}", key) from exc

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                if self.fsync:
                    os.fsync(f.fileno())
            os.replace(tmp, path)
        except BaseException as exc:
            Path(tmp).unlink(missing_ok=True)
            if isinstance(exc, OSError):
                raise StorageIOError(f"Can't write record {key!r}: {exc}", key) from exc
            raise

        if self.fsync:
            self._sync_dir(ns, key)
        logger.debug("Wrote %s (%d bytes)", path, len(data))

    def _sync_dir(self, directory: Path, key: str) -> None:
        # Persist the rename itself; directories can't be opened on Windows.
        if os.name != "posix":
            return
        try:
            fd = os.open(directory, os.O_RDONLY)
            try:
                os.fsync(fd)
            finally:
                os.close(fd)
        except OSError as exc:
            raise StorageIOError(f"Can't sync directory for {key!r}: {exc}", key) from exc

    def _read_payload(self, path: Path, key: str) -> Any:
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            raise KeyError(key) from None
        except OSError as exc:
            if _name_too_long(exc):
                raise KeyError(key) from exc
            raise StorageIOError(f"Can't read record {key!r}: {exc}", key) from exc
        try:
            return self.serializer.load(data)
        except Exception as exc:
            raise RecordDecodeError(f"Can't decode record {key!r}: {exc}", key) from exc

    def load(self, namespace: str, key: str) -> Any:
        path = self._path_for(namespace, key)
        payload = self._read_payload(path, key)
        if is_hashed_stem(path.name) and isinstance(payload, dict):
            if payload.pop(KEY_FIELD, None) != key:
                raise KeyError(key)
        return payload

    def delete(self, namespace: str, key: str) -> None:
        path = self._path_for(namespace, key)
        try:
            path.unlink()
        except FileNotFoundError:
            raise KeyError(key) from None
        except OSError as exc:
            if _name_too_long(exc):
                raise KeyError(key) from exc
            raise StorageIOError(f"Can't delete record {key!r}: {exc}", key) from exc
        logger.debug("Deleted %s", path)

    def list_keys(self, namespace: str) -> Iterable[str]:
        ns = self._ns_dir(namespace)
        if not ns.is_dir():
            return
        ext = self.extension
        for p in ns.iterdir():
            if not (p.is_file() and p.name.endswith(ext) and len(p.name) > len(ext)):
                continue
            stem = p.name[: -len(ext)]
            if not is_hashed_stem(stem):
                yield decode_key(stem)
                continue
            try:
                payload = self._read_payload(p, stem)
            except (KeyError, StorageIOError):
                logger.warning("Skipping unreadable record file %s", p)
                continue
            key = payload.get(KEY_FIELD) if isinstance(payload, dict) else None
            if isinstance(key, str):
                yield key
            else:
                logger.warning("Record file %s has no stored key", p)

    def configure(self, **options: Any) -> None:
        """Accept `fsync` (bool) and `serializer` (name or instance)."""
        if "fsync" in options:
            self.fsync = bool(options["fsync"])
        serializer = options.get("serializer")
        if isinstance(serializer, str):
            self.serializer = create_serializer(serializer, **options.get("serializer_options", {}))
        elif serializer is not None:
            self.serializer = serializer
