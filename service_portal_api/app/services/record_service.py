"""
Record access layer for service requests and assets.

This module is the only place where views meet storage.  It validates
form input, turns it into flat documents tagged with a ``kind`` and
writes them to a single collection of a :class:`DocumentStore`.  On the
way back it decodes stored documents into :class:`ServiceRequest` or
:class:`Asset` models and orders them newest first.

The store and the collection path are passed in explicitly, so the
same service runs against SQLite in production and against the
in-memory store in tests.  Nothing is retried: validation errors are
raised before any write and storage errors are re-raised unchanged.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from ..core.exceptions import DecodeError, RecordValidationError, StorageError
from ..schemas.asset import Asset, AssetCreate
from ..schemas.service_request import RequestStatus, ServiceRequest, ServiceRequestCreate
from ..store.base import Document, DocumentStore, LiveQuery

logger = logging.getLogger(__name__)

SERVICE_REQUEST_KIND = "serviceRequest"
ASSET_KIND = "asset"

RECORD_TYPES: Dict[str, Type[BaseModel]] = {
    SERVICE_REQUEST_KIND: ServiceRequest,
    ASSET_KIND: Asset,
}

Record = Union[ServiceRequest, Asset]
R = TypeVar("R", ServiceRequest, Asset)
M = TypeVar("M", bound=BaseModel)


def decode_record(document: Mapping[str, Any]) -> Record:
    """Decode a stored document into the record type named by its ``kind``.

    Raises
    ------
    DecodeError
        If ``kind`` is missing or unknown, or the document does not fit
        the record type.
    """
    kind = document.get("kind")
    record_type = RECORD_TYPES.get(kind) if isinstance(kind, str) else None
    if record_type is None:
        raise DecodeError(f"Unknown record kind {kind!r} in document {document.get('id')!r}")
    try:
        return record_type.model_validate(dict(document))
    except ValidationError as exc:
        raise DecodeError(
            f"Document {document.get('id')!r} is not a valid {kind}: {exc.error_count()} error(s)"
        ) from exc


def _timestamp(record: Record) -> datetime:
    value = record.submitted_at if isinstance(record, ServiceRequest) else record.registered_at
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _shape(documents: List[Document], record_type: Type[R]) -> List[R]:
    """Decode documents of one kind and order them newest first."""
    records: List[R] = []
    for document in documents:
        try:
            record = decode_record(document)
        except DecodeError as exc:
            logger.error("Skipping undecodable document: %s", exc)
            continue
        if isinstance(record, record_type):
            records.append(record)
    # sort() is stable, so equal timestamps keep insertion order.
    records.sort(key=_timestamp, reverse=True)
    return records


def _parse(model: Type[M], data: Union[M, Mapping[str, Any]]) -> M:
    """Validate form input, reporting the first offending field by its wire name."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        error = exc.errors()[0]
        field = str(error["loc"][0]) if error["loc"] else "input"
        info = model.model_fields.get(field)
        if info is not None and info.alias:
            field = info.alias
        raise RecordValidationError(field, f"{field}: {error['msg']}") from exc


class RecordFeed(Generic[R]):
    """Live, cancellable sequence of record snapshots.

    Wraps a store :class:`LiveQuery` and yields decoded, ordered lists
    of records.  ``cancel`` stops delivery; a terminated subscription
    raises :class:`SubscriptionError` from the iterator.
    """

    def __init__(self, live: LiveQuery, record_type: Type[R]) -> None:
        self._live = live
        self._record_type = record_type

    @property
    def state(self) -> str:
        return self._live.state

    def cancel(self) -> None:
        self._live.cancel()

    def __aiter__(self) -> "RecordFeed[R]":
        return self

    async def __anext__(self) -> List[R]:
        documents = await self._live.__anext__()
        return _shape(documents, self._record_type)


class RecordService:
    """Creates and lists service requests and assets in one collection."""

    def __init__(
        self,
        store: DocumentStore,
        collection: str,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.store = store
        self.collection = collection
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def submit_service_request(
        self,
        data: Union[ServiceRequestCreate, Mapping[str, Any]],
        submitter_id: Optional[str] = None,
    ) -> ServiceRequest:
        """Store a new service request and return it.

        Parameters
        ----------
        data : ServiceRequestCreate or mapping
            ``clientName``, ``clientEmail``, ``serviceType`` and
            ``description``; all required and non-empty.
        submitter_id : Optional[str]
            Session id of the submitter, if known.

        Raises
        ------
        RecordValidationError
            If a field is empty or ``serviceType`` is unknown.  Nothing
            is written in that case.
        StorageError
            If the store rejects the write.
        """
        request = _parse(ServiceRequestCreate, data)
        document: Document = {
            "kind": SERVICE_REQUEST_KIND,
            **request.model_dump(by_alias=True, mode="json"),
            "submittedAt": self._clock().isoformat(),
            "status": RequestStatus.NEW.value,
        }
        if submitter_id:
            document["submitterId"] = submitter_id
        try:
            doc_id = await self.store.create(self.collection, document)
        except StorageError as exc:
            logger.error("Failed to create service request: %s", exc)
            raise
        logger.info("Created service request %s (%s)", doc_id, request.service_type.value)
        return ServiceRequest.model_validate({"id": doc_id, **document})

    async def register_asset(
        self,
        owner_id: str,
        data: Union[AssetCreate, Mapping[str, Any]],
    ) -> Asset:
        """Store a new asset owned by ``owner_id`` and return it.

        Raises
        ------
        RecordValidationError
            If ``owner_id`` or any input field is empty.
        StorageError
            If the store rejects the write.
        """
        if not isinstance(owner_id, str) or not owner_id.strip():
            raise RecordValidationError("ownerId", "ownerId: a session identifier is required")
        asset = _parse(AssetCreate, data)
        document: Document = {
            "kind": ASSET_KIND,
            "ownerId": owner_id,
            **asset.model_dump(by_alias=True, mode="json"),
            "registeredAt": self._clock().isoformat(),
        }
        try:
            doc_id = await self.store.create(self.collection, document)
        except StorageError as exc:
            logger.error("Failed to register asset for %s: %s", owner_id, exc)
            raise
        logger.info("User %s registered asset %s", owner_id, doc_id)
        return Asset.model_validate({"id": doc_id, **document})

    async def subscribe_own_assets(self, owner_id: str) -> RecordFeed[Asset]:
        """Live sequence of the assets registered by ``owner_id``."""
        if not owner_id:
            raise RecordValidationError("ownerId", "ownerId: a session identifier is required")
        return await self._subscribe({"kind": ASSET_KIND, "ownerId": owner_id}, Asset)

    async def subscribe_all_service_requests(self) -> RecordFeed[ServiceRequest]:
        """Live sequence of every service request."""
        return await self._subscribe({"kind": SERVICE_REQUEST_KIND}, ServiceRequest)

    async def subscribe_all_assets(self) -> RecordFeed[Asset]:
        """Live sequence of every asset regardless of owner."""
        return await self._subscribe({"kind": ASSET_KIND}, Asset)

    async def list_own_assets(self, owner_id: str) -> List[Asset]:
        if not owner_id:
            raise RecordValidationError("ownerId", "ownerId: a session identifier is required")
        documents = await self.store.query(self.collection, {"kind": ASSET_KIND, "ownerId": owner_id})
        return _shape(documents, Asset)

    async def list_service_requests(self) -> List[ServiceRequest]:
        documents = await self.store.query(self.collection, {"kind": SERVICE_REQUEST_KIND})
        return _shape(documents, ServiceRequest)

    async def list_assets(self) -> List[Asset]:
        documents = await self.store.query(self.collection, {"kind": ASSET_KIND})
        return _shape(documents, Asset)

    async def _subscribe(self, filters: Dict[str, Any], record_type: Type[R]) -> RecordFeed[R]:
        try:
            live = await self.store.subscribe(self.collection, filters)
        except StorageError as exc:
            logger.error("Failed to subscribe to %s: %s", filters, exc)
            raise
        return RecordFeed(live, record_type)
