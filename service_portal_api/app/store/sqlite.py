"""
SQLite-backed document store.

Documents are serialised to JSON and kept in the ``documents`` table
created by the migrations in ``core.db``.  Equality filters are
translated into ``json_extract`` comparisons.  Every operation opens
its own connection, so the store can be shared by all requests of a
process.

``sqlite3`` calls block, so they run on a single worker thread owned
by the store; the event loop stays free while a statement executes and
writes are committed in the order they were issued.

SQLite has no change feed of its own; live queries are refreshed by
the base class after each insert made through this store instance.
Writes made by other processes become visible on the next refresh.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
import sqlite3
import uuid
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from ..core.db import get_cursor, init_db
from ..core.exceptions import StorageError
from .base import Document, DocumentStore

logger = logging.getLogger(__name__)

_FIELD_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

T = TypeVar("T")


class SQLiteDocumentStore(DocumentStore):
    """Document store persisting to a SQLite database file."""

    backend = "sqlite"

    def __init__(self, db_path: str) -> None:
        super().__init__()
        self.db_path = db_path
        self._executor: Optional[ThreadPoolExecutor] = None

    async def open(self) -> None:
        try:
            version = await self._run(init_db, self.db_path)
        except sqlite3.Error as exc:
            logger.error("Failed to initialise %s: %s", self.db_path, exc)
            raise StorageError(str(exc)) from exc
        logger.info("Document database %s at schema version %s", self.db_path, version)

    async def close(self) -> None:
        await super().close()
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="sqlite-store")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, func, *args)

    async def _insert(self, collection: str, document: Document) -> str:
        doc_id = uuid.uuid4().hex
        payload = json.dumps(document, ensure_ascii=False)
        try:
            await self._run(self._write, doc_id, collection, payload)
        except sqlite3.Error as exc:
            logger.error("Failed to insert document into %s: %s", collection, exc)
            raise StorageError(str(exc)) from exc
        return doc_id

    async def _select(self, collection: str, filters: Dict[str, Any]) -> List[Document]:
        query = "SELECT id, data FROM documents WHERE collection = ?"
        params: list = [collection]
        for field, value in filters.items():
            if not _FIELD_NAME.match(field):
                raise ValueError(f"Unsupported filter field: {field!r}")
            # Field names are validated above, so inlining the JSON path is safe
            # and keeps the expression index on kind usable.
            query += f" AND json_extract(data, '$.{field}') IS ?"
            params.append(value)
        query += " ORDER BY seq ASC"
        try:
            rows = await self._run(self._read, query, tuple(params))
        except sqlite3.Error as exc:
            logger.error("Failed to query %s: %s", collection, exc)
            raise StorageError(str(exc)) from exc
        return [{"id": doc_id, **json.loads(data)} for doc_id, data in rows]

    def _write(self, doc_id: str, collection: str, payload: str) -> None:
        with get_cursor(self.db_path) as cursor:
            cursor.execute(
                "INSERT INTO documents (id, collection, data) VALUES (?, ?, ?)",
                (doc_id, collection, payload),
            )

    def _read(self, query: str, params: Tuple[Any, ...]) -> List[Tuple[str, str]]:
        with get_cursor(self.db_path) as cursor:
            return [(row["id"], row["data"]) for row in cursor.execute(query, params).fetchall()]
