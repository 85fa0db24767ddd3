from __future__ import annotations

import logging

from vibeforms.config import Settings, ensure_dirs
from vibeforms.protocols import Storage
from vibeforms.repo_json import JSONStorage
from vibeforms.repo_sqlite import SQLiteStorage

logger = logging.getLogger(__name__)


def init_storage(settings: Settings) -> Storage:
    ensure_dirs(settings)
    if settings.storage_backend == "json":
        logger.info("Using JSON storage at %s", settings.json_path)
        return JSONStorage(settings.json_path)
    logger.info("Using SQLite storage at %s", settings.sqlite_path)
    return SQLiteStorage(settings.sqlite_path)
