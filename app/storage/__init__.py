"""Storage backends."""

import logging
import threading
from typing import Optional

from app.storage.base import Storage
from app.storage.memory import MemoryStorage
from app.storage.sql import SqlStorage

__all__ = ["Storage", "MemoryStorage", "SqlStorage", "create_storage", "get_storage", "reset_storage"]

logger = logging.getLogger(__name__)


def create_storage(database_url: str = "") -> Storage:
    """Build a SQL backend for a database URL, or memory storage when empty."""
    if database_url:
        return SqlStorage(database_url)
    logger.info("Using in-memory storage")
    return MemoryStorage()


# Global singleton
_storage: Optional[Storage] = None
_storage_lock = threading.Lock()


def get_storage() -> Storage:
    """Get the global Storage instance; safe to call from concurrent requests."""
    global _storage
    if _storage is None:
        with _storage_lock:
            if _storage is None:
                from app.config import config
                _storage = create_storage(config.DATABASE_URL)
    return _storage


def reset_storage() -> None:
    """Close and drop the storage singleton (for testing)."""
    global _storage
    with _storage_lock:
        if _storage is not None:
            _storage.close()
        _storage = None
