"""Store configuration loaded from a YAML file.

The file is optional. A missing file yields the defaults; a file that
exists but can't be parsed is an error, since silently ignoring it would
point the store at the wrong directory.

Example `file-db.yml`::

    data_dir: /var/lib/myapp/file-db
    serializer: json
    fsync: true
    log_level: INFO
"""
from __future__ import annotations
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("file-db.yml")


@dataclass
class StoreConfig:
    data_dir: Optional[str] = None
    serializer: str = "json"
    serializer_options: Dict[str, Any] = field(default_factory=dict)
    fsync: bool = True
    log_level: str = "WARNING"


def load_config(path: Optional[str | Path] = None) -> StoreConfig:
    cfg_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        logger.debug("No store config at %s; using defaults", cfg_path)
        return StoreConfig()
    try:
        with cfg_path.open("r", encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"invalid config format in {cfg_path}: parse error") from e
    if data is None:
        return StoreConfig()
    if not isinstance(data, dict):
        raise ValueError(f"invalid config format in {cfg_path}: expected mapping")

    known = {f.name for f in fields(StoreConfig)}
    for name in sorted(set(data) - known):
        logger.warning("Ignoring unknown config key %r in %s", name, cfg_path)

    cfg = StoreConfig(**{k: v for k, v in data.items() if k in known})
    if cfg.data_dir is not None:
        cfg.data_dir = str(cfg.data_dir)
    if not isinstance(cfg.serializer_options, dict):
        raise ValueError("serializer_options must be a mapping")
    cfg.fsync = bool(cfg.fsync)
    return cfg


def dump_config(cfg: StoreConfig) -> str:
    return yaml.safe_dump(asdict(cfg), sort_keys=False)
