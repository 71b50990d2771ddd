"""
Document store backed by SQLAlchemy async (PostgreSQL in production)
"""

from typing import Dict, Any, Optional
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
from models.document import StoredDocument
from schemas.document import Document, compute_content_hash
from store.base import UpsertClient
from core.exceptions import StoreError
import logging

logger = logging.getLogger(__name__)


class SQLUpsertClient(UpsertClient):
    """
    Read and write documents in the `documents` table.

    Each call opens its own session, so the client can be shared by
    concurrently processed records.
    """

    def __init__(self, session_maker: async_sessionmaker):
        self.session_maker = session_maker

    async def get_thing(self, collection: str, id: str) -> Optional[Document]:
        try:
            async with self.session_maker() as session:
                row = await self._fetch_row(session, collection, id)
                return _to_document(row) if row is not None else None
        except SQLAlchemyError as e:
            raise StoreError(
                "Failed to read document",
                context={"operation": "get", "collection": collection, "document_id": id},
                original_exception=e
            )

    async def create_thing(
        self,
        collection: str,
        id: str,
        metadata: Dict[str, Any],
        body: str
    ) -> Document:
        row = StoredDocument(
            collection=collection,
            doc_id=id,
            doc_metadata=metadata,
            body=body,
            content_hash=compute_content_hash(metadata, body)
        )
        try:
            async with self.session_maker() as session:
                session.add(row)
                await session.commit()
        except IntegrityError as e:
            raise StoreError(
                f"Document already exists: {collection}/{id}",
                context={"operation": "create", "collection": collection, "document_id": id},
                original_exception=e
            )
        except SQLAlchemyError as e:
            raise StoreError(
                "Failed to create document",
                context={"operation": "create", "collection": collection, "document_id": id},
                original_exception=e
            )

        logger.debug(f"Created {collection}/{id}")
        return Document(id=id, collection=collection, metadata=metadata, body=body)

    async def update_thing(
        self,
        collection: str,
        id: str,
        metadata: Optional[Dict[str, Any]] = None,
        body: Optional[str] = None
    ) -> Document:
        try:
            async with self.session_maker() as session:
                row = await self._fetch_row(session, collection, id)
                if row is None:
                    raise StoreError(
                        f"Document not found: {collection}/{id}",
                        context={"operation": "update", "collection": collection, "document_id": id}
                    )
                if metadata is not None:
                    row.doc_metadata = metadata
                if body is not None:
                    row.body = body
                row.content_hash = compute_content_hash(row.doc_metadata, row.body)
                await session.commit()
                document = _to_document(row)
        except SQLAlchemyError as e:
            raise StoreError(
                "Failed to update document",
                context={"operation": "update", "collection": collection, "document_id": id},
                original_exception=e
            )

        logger.debug(f"Updated {collection}/{id}")
        return document

    @staticmethod
    async def _fetch_row(session, collection: str, id: str) -> Optional[StoredDocument]:
        result = await session.execute(
            select(StoredDocument).where(
                StoredDocument.collection == collection,
                StoredDocument.doc_id == id
            )
        )
        return result.scalar_one_or_none()


def _to_document(row: StoredDocument) -> Document:
    return Document(
        id=row.doc_id,
        collection=row.collection,
        metadata=row.doc_metadata or {},
        body=row.body or ""
    )
