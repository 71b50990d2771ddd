"""
In-memory document store
"""

from typing import Dict, Any, Optional, List, Tuple
from copy import deepcopy
from schemas.document import Document
from store.base import UpsertClient
from core.exceptions import StoreError


class InMemoryUpsertClient(UpsertClient):
    """
    Dict-backed store keyed by (collection, id).

    Every write is appended to `writes` as (operation, collection, id) so
    callers can assert what a run actually touched.
    """

    def __init__(self, documents: Optional[List[Document]] = None):
        self._documents: Dict[Tuple[str, str], Document] = {}
        self.writes: List[Tuple[str, str, str]] = []
        for document in documents or []:
            self._documents[(document.collection, document.id)] = document

    async def get_thing(self, collection: str, id: str) -> Optional[Document]:
        document = self._documents.get((collection, id))
        return document.model_copy(deep=True) if document else None

    async def create_thing(
        self,
        collection: str,
        id: str,
        metadata: Dict[str, Any],
        body: str
    ) -> Document:
        key = (collection, id)
        if key in self._documents:
            raise StoreError(
                f"Document already exists: {collection}/{id}",
                context={"operation": "create", "collection": collection, "document_id": id}
            )
        document = Document(id=id, collection=collection, metadata=deepcopy(metadata), body=body)
        self._documents[key] = document
        self.writes.append(("create", collection, id))
        return document

    async def update_thing(
        self,
        collection: str,
        id: str,
        metadata: Optional[Dict[str, Any]] = None,
        body: Optional[str] = None
    ) -> Document:
        key = (collection, id)
        existing = self._documents.get(key)
        if existing is None:
            raise StoreError(
                f"Document not found: {collection}/{id}",
                context={"operation": "update", "collection": collection, "document_id": id}
            )
        document = Document(
            id=id,
            collection=collection,
            metadata=deepcopy(metadata) if metadata is not None else existing.metadata,
            body=body if body is not None else existing.body
        )
        self._documents[key] = document
        self.writes.append(("update", collection, id))
        return document

    def documents(self, collection: Optional[str] = None) -> List[Document]:
        """Snapshot of stored documents, optionally for one collection"""
        return [
            doc for (coll, _), doc in sorted(self._documents.items())
            if collection is None or coll == collection
        ]

    def __len__(self) -> int:
        return len(self._documents)
