"""
Document store backends.

``build_store`` picks the backend named in the settings.  Tests and
embedders may also construct a store directly and hand it to
``create_app``.
"""

from ..core.config import Settings
from ..core.db import get_database_path
from .base import Document, DocumentStore, LiveQuery, matches
from .memory import MemoryDocumentStore
from .sqlite import SQLiteDocumentStore


def build_store(settings: Settings) -> DocumentStore:
    """Instantiate the store configured by ``settings.store_backend``."""
    backend = settings.store_backend.lower()
    if backend == "memory":
        return MemoryDocumentStore()
    if backend == "sqlite":
        return SQLiteDocumentStore(get_database_path(settings.database_url))
    raise ValueError(f"Unknown store backend: {settings.store_backend!r}")


__all__ = [
    "Document",
    "DocumentStore",
    "LiveQuery",
    "MemoryDocumentStore",
    "SQLiteDocumentStore",
    "build_store",
    "matches",
]
