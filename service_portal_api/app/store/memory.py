"""In-process document store.  Contents are lost when the process exits."""

from __future__ import annotations

import copy
import uuid
from typing import Any, Dict, List

from .base import Document, DocumentStore, matches


class MemoryDocumentStore(DocumentStore):
    """Keeps every collection in a dictionary keyed by document id."""

    backend = "memory"

    def __init__(self) -> None:
        super().__init__()
        self._collections: Dict[str, Dict[str, Document]] = {}

    async def _insert(self, collection: str, document: Document) -> str:
        doc_id = uuid.uuid4().hex
        self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(document)
        return doc_id

    async def _select(self, collection: str, filters: Dict[str, Any]) -> List[Document]:
        documents = self._collections.get(collection, {})
        return [
            {"id": doc_id, **copy.deepcopy(doc)}
            for doc_id, doc in documents.items()
            if matches(doc, filters)
        ]

    def count(self, collection: str) -> int:
        return len(self._collections.get(collection, {}))
