"""
Abstract contract for reading and writing documents in the store
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
from schemas.document import Document


class UpsertClient(ABC):
    """
    Store access used by the pipeline's upsert decision.

    Implementations must be safe for concurrent calls; conflicting writes
    to the same id are serialized by the store, not the pipeline.
    All methods raise StoreError on transport or validation failures.
    A missing document is not an error: get_thing returns None.
    """

    @abstractmethod
    async def get_thing(self, collection: str, id: str) -> Optional[Document]:
        """Return the stored document or None if absent"""
        pass

    @abstractmethod
    async def create_thing(
        self,
        collection: str,
        id: str,
        metadata: Dict[str, Any],
        body: str
    ) -> Document:
        """Create a new document; fails if it already exists"""
        pass

    @abstractmethod
    async def update_thing(
        self,
        collection: str,
        id: str,
        metadata: Optional[Dict[str, Any]] = None,
        body: Optional[str] = None
    ) -> Document:
        """Replace metadata and/or body of an existing document"""
        pass

    async def close(self):
        """Release resources held by the client"""
        return None
