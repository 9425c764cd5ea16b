"""Store initialization and the process-wide active store.

`initialize` resolves (or creates) the storage directory, builds a
`PersistenceEngine` over it and returns it. The engine is also kept as the
active store so the module-level `create`/`read`/... helpers can reach it;
code that prefers explicit wiring can simply hold on to the returned
engine and ignore the helpers.

Failing to set up storage is fatal: the process cannot do anything
useful without it, so `initialize` exits instead of returning an error.
"""
from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional

from filedb_lib.config import StoreConfig, load_config
from filedb_lib.engine import PersistenceEngine
from filedb_lib.storage.serializer import Serializer, create_serializer

logger = logging.getLogger(__name__)

DEFAULT_DIR_NAME = "file-db"

# Module-level place to hold the engine published by `initialize`
_active_store: list[PersistenceEngine] = []


def default_directory() -> Path:
    return Path.cwd() / DEFAULT_DIR_NAME


def initialize(
    dirpath: Optional[str | Path] = None,
    *,
    serializer: Optional[Serializer] = None,
    fsync: bool = True,
) -> PersistenceEngine:
    """Create the storage directory if needed and publish a new engine.

    Calling this again replaces the active store; operations already
    running against the previous engine are not migrated.
    """
    db_dir = Path(dirpath) if dirpath is not None else default_directory()
    try:
        if not db_dir.exists():
            db_dir.mkdir(parents=True, exist_ok=True)
            logger.info("Created storage directory %s", db_dir)
        engine = PersistenceEngine(db_dir, serializer=serializer, fsync=fsync)
    except Exception:
        logger.critical("Can't initialize storage at %s", db_dir, exc_info=True)
        raise SystemExit(1)

    _active_store.clear()
    _active_store.append(engine)
    logger.info("Storage initialized at %s", db_dir)
    return engine


def initialize_from_config(config_path: Optional[str | Path] = None) -> PersistenceEngine:
    """Initialize using a YAML store config (see `filedb_lib.config`)."""
    try:
        cfg: StoreConfig = load_config(config_path)
        serializer = create_serializer(cfg.serializer, **cfg.serializer_options)
    except Exception:
        logger.critical("Can't load store configuration from %s", config_path, exc_info=True)
        raise SystemExit(1)
    return initialize(cfg.data_dir, serializer=serializer, fsync=cfg.fsync)


def get_active_store() -> PersistenceEngine:
    if not _active_store:
        raise RuntimeError("Store not initialized; call initialize() first")
    return _active_store[0]


def reset_active_store() -> None:
    _active_store.clear()


def create_if_non_existent_else_update(key: str, value: str) -> None:
    """Store a value, creating the record if it didn't exist yet."""
    get_active_store().create_if_non_existent_else_update(key, value)


def create(key: str, value: str) -> None:
    get_active_store().create(key, value)


def read(key: str) -> str:
    return get_active_store().read(key)


def update(key: str, value: str) -> None:
    get_active_store().update(key, value)


def delete(key: str) -> None:
    get_active_store().delete(key)
