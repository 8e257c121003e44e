"""
Storage factory - switch storage backend from config (lazy env version)
======================================================================

This module centralizes selection of the storage backend (in-memory vs DB)
so the rest of the app can stay ignorant of where data lives.

- Reads environment **at call time** to avoid stale values in tests.
- Imports the DB backend **only if** the selected backend is "postgres".

Environment variables
---------------------
- LINK_STORAGE_BACKEND: "memory" (default) or "postgres"
- LINK_DB_DSN:          DSN string if backend=="postgres"
- LINK_LOCK_SHARDS:     lock shard count for the memory backend
"""

from typing import Optional
import logging
import os

from link_platform.config import settings
from link_platform.storage.base import BaseStorage
from link_platform.storage.storage import Storage

log = logging.getLogger(__name__)


def get_storage(backend: Optional[str] = None, **kwargs) -> BaseStorage:
    """
    Return a storage backend based on configuration.

    Parameters
    ----------
    backend : str, optional
        "memory" (default) or "postgres". If omitted, reads LINK_STORAGE_BACKEND.
    kwargs : dict
        Extra args for the backend constructor: dsn="..." for postgres,
        lock_shards=N for memory.

    Returns
    -------
    BaseStorage
    """
    be = (backend or os.getenv("LINK_STORAGE_BACKEND", "memory")).strip().lower()
    log.info("Selected storage backend: %r", be)

    if be == "memory":
        return Storage(lock_shards=kwargs.get("lock_shards", settings.LOCK_SHARDS))

    if be == "postgres":
        dsn = kwargs.get("dsn") or os.getenv("LINK_DB_DSN", "")
        if not dsn:
            raise ValueError("DB_DSN is required for postgres backend (env LINK_DB_DSN)")
        # Local import to avoid hard dependency when not using postgres
        from link_platform.storage.db_storage import DBStorage
        return DBStorage(dsn=dsn)

    raise ValueError(f"Unknown storage backend: {be!r}")
