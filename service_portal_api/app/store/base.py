"""
Document store contract and live query handle.

A document store keeps loosely typed documents (plain dictionaries)
grouped in named collections.  It supports three operations: creating
a document, querying a collection by field equality and subscribing to
such a query.  A subscription is represented by a :class:`LiveQuery`,
an async iterator of snapshots that keeps receiving updated result sets
until it is cancelled.

Change notification is implemented once here: after every successful
insert the store re-evaluates each live query whose filters match the
new document and pushes the fresh result set to it.  Concrete stores
only implement ``_insert`` and ``_select``.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..core.exceptions import StorageError, SubscriptionError

logger = logging.getLogger(__name__)

Document = Dict[str, Any]


def matches(document: Mapping[str, Any], filters: Mapping[str, Any]) -> bool:
    """Return True if ``document`` satisfies every equality filter."""
    return all(document.get(field) == value for field, value in filters.items())


class LiveQuery:
    """Cancellable stream of snapshots for one collection query.

    Snapshots are lists of documents.  Only the newest undelivered
    snapshot is kept, so several writes may reach the consumer as a
    single snapshot.  Snapshots are handed over on the event loop that
    created the query, which makes ``publish`` safe to call from other
    threads.

    Iterating a cancelled query stops immediately.  A failed query
    raises :class:`SubscriptionError` from every subsequent ``__anext__``.
    """

    def __init__(
        self,
        collection: str,
        filters: Optional[Mapping[str, Any]] = None,
        on_cancel: Optional[Callable[["LiveQuery"], None]] = None,
    ) -> None:
        self.collection = collection
        self.filters: Dict[str, Any] = dict(filters or {})
        self.state = "subscribed"
        self._on_cancel = on_cancel
        self._loop = asyncio.get_running_loop()
        self._wakeup = asyncio.Event()
        self._pending: Optional[List[Document]] = None
        self._error: Optional[BaseException] = None

    @property
    def active(self) -> bool:
        return self.state == "subscribed"

    def matches(self, document: Mapping[str, Any]) -> bool:
        return matches(document, self.filters)

    def publish(self, documents: List[Document]) -> None:
        """Offer a new result set to the consumer."""
        self._call_in_loop(self._deliver, [dict(doc) for doc in documents])

    def fail(self, error: BaseException) -> None:
        """Terminate the query; the consumer sees a SubscriptionError."""
        self._call_in_loop(self._terminate, error)

    def cancel(self) -> None:
        """Stop delivery.  Safe to call more than once."""
        if self.state == "cancelled":
            return
        self.state = "cancelled"
        self._pending = None
        self._wakeup.set()
        self._detach()

    def _call_in_loop(self, callback: Callable[[Any], None], arg: Any) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            callback(arg)
        elif self._loop.is_closed():
            # The consumer's loop is gone; nobody can receive anything.
            self.state = "cancelled"
            self._detach()
        else:
            self._loop.call_soon_threadsafe(callback, arg)

    def _deliver(self, snapshot: List[Document]) -> None:
        if self.state != "subscribed":
            return
        self._pending = snapshot
        self._wakeup.set()

    def _terminate(self, error: BaseException) -> None:
        if self.state != "subscribed":
            return
        self.state = "failed"
        self._error = error
        self._pending = None
        self._wakeup.set()
        self._detach()

    def _detach(self) -> None:
        callback, self._on_cancel = self._on_cancel, None
        if callback is not None:
            callback(self)

    def __aiter__(self) -> "LiveQuery":
        return self

    async def __anext__(self) -> List[Document]:
        while True:
            if self.state == "cancelled":
                raise StopAsyncIteration
            if self.state == "failed":
                raise SubscriptionError(
                    f"Subscription to {self.collection} terminated: {self._error}"
                ) from self._error
            if self._pending is not None:
                snapshot, self._pending = self._pending, None
                return snapshot
            self._wakeup.clear()
            await self._wakeup.wait()


class DocumentStore(ABC):
    """Abstract document store with push-based subscriptions."""

    backend = "abstract"

    def __init__(self) -> None:
        self._live: Dict[str, List[LiveQuery]] = {}

    async def open(self) -> None:
        """Prepare the backend.  Called once before the first request."""

    async def close(self) -> None:
        """Cancel every live query and release backend resources."""
        for queries in list(self._live.values()):
            for live in list(queries):
                live.cancel()
        self._live.clear()

    async def create(self, collection: str, document: Mapping[str, Any]) -> str:
        """Insert ``document`` and return its store-assigned id.

        An ``id`` key in ``document`` is ignored; identifiers are always
        assigned by the store.
        """
        data = {key: value for key, value in document.items() if key != "id"}
        doc_id = await self._insert(collection, data)
        await self._broadcast(collection, data)
        return doc_id

    async def query(
        self, collection: str, filters: Optional[Mapping[str, Any]] = None
    ) -> List[Document]:
        """Return all documents of ``collection`` matching ``filters``.

        Documents carry their ``id`` and come back in insertion order.
        """
        return await self._select(collection, dict(filters or {}))

    async def subscribe(
        self, collection: str, filters: Optional[Mapping[str, Any]] = None
    ) -> LiveQuery:
        """Start a live query.  The current result set is its first snapshot.

        Raises
        ------
        StorageError
            If the initial result set cannot be read.
        """
        live = LiveQuery(collection, filters, on_cancel=self._forget)
        self._live.setdefault(collection, []).append(live)
        try:
            snapshot = await self._select(collection, live.filters)
        except Exception:
            live.cancel()
            raise
        live.publish(snapshot)
        logger.debug("Subscribed to %s with filters %s", collection, live.filters)
        return live

    def live_queries(self, collection: str) -> List[LiveQuery]:
        """Return the active live queries on ``collection``."""
        return [live for live in self._live.get(collection, []) if live.active]

    async def _broadcast(self, collection: str, document: Mapping[str, Any]) -> None:
        for live in list(self._live.get(collection, [])):
            if not live.active or not live.matches(document):
                continue
            try:
                snapshot = await self._select(collection, live.filters)
            except StorageError as exc:
                logger.error("Live query on %s failed: %s", collection, exc)
                live.fail(exc)
                continue
            live.publish(snapshot)

    def _forget(self, live: LiveQuery) -> None:
        queries = self._live.get(live.collection)
        if queries and live in queries:
            queries.remove(live)

    @abstractmethod
    async def _insert(self, collection: str, document: Document) -> str:
        """Persist ``document`` and return its new id."""

    @abstractmethod
    async def _select(self, collection: str, filters: Dict[str, Any]) -> List[Document]:
        """Return matching documents with their ids, in insertion order."""
