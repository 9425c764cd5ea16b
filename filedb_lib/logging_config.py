from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional

from filedb_lib.config import load_config


def configure_logging(config_path: Optional[Path] = None) -> logging.Logger:
    """Configure root logging for an application embedding the store.

    An early NOTSET basic config lets the config loader emit while it reads
    `log_level`; the root logger is then reconfigured to that level. Any
    problem reading the level falls back to WARNING. Returns a module
    logger for the caller.
    """
    logging.basicConfig(level=logging.NOTSET, format='%(asctime)s %(levelname)s %(message)s')
    level = logging.WARNING

    try:
        lvl_name = load_config(config_path).log_level
        numeric = getattr(logging, str(lvl_name).upper(), None)
        if isinstance(numeric, int):
            level = numeric
    except (OSError, ValueError):
        logging.exception('Failed to read store config for logging setup')

    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
    logging.basicConfig(level=level, format='%(asctime)s %(levelname)s [%(name)s]: %(message)s')
    logger = logging.getLogger(__name__)
    logger.info("Log level set to %s", logging.getLevelName(level))
    return logger
