"""
Upsert decision: create, update or skip one transformed document
"""

import asyncio
from typing import Dict, Optional
from schemas.document import Document
from store.base import UpsertClient
from models.base import UpsertOutcome
from core.exceptions import StoreError
import logging

logger = logging.getLogger(__name__)


class RunLedger:
    """
    Content hashes of documents a mapping run has written, or would have
    written under dry-run.

    A later record resolving to an id already in the ledger is classified
    against the ledger instead of the store, so a dry-run that never writes
    classifies duplicate ids the same way a live run does. Records sharing
    an id are serialized through a per-id lock.
    """

    def __init__(self):
        self._hashes: Dict[str, str] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def lock(self, document_id: str) -> asyncio.Lock:
        return self._locks.setdefault(document_id, asyncio.Lock())

    def get(self, document_id: str) -> Optional[str]:
        return self._hashes.get(document_id)

    def record(self, document_id: str, content_hash: str):
        self._hashes[document_id] = content_hash

    def __contains__(self, document_id: str) -> bool:
        return document_id in self._hashes

    def __len__(self) -> int:
        return len(self._hashes)


async def apply_upsert(
    client: UpsertClient,
    document: Document,
    skip_existing: bool = False,
    dry_run: bool = False,
    ledger: Optional[RunLedger] = None
) -> UpsertOutcome:
    """
    Decide and (unless dry_run) perform the write for one document.

    1. Look the document up (the run ledger first, then the store)
    2. Absent -> create, CREATED
    3. Present and skip_existing -> SKIPPED, even if the content differs
    4. Present with the same content hash -> SKIPPED
    5. Present with different content -> update, UPDATED

    Under dry_run the same classification is returned but create_thing and
    update_thing are never called.

    Raises:
        StoreError: If any store call fails
    """
    ledger = ledger if ledger is not None else RunLedger()
    collection, document_id = document.collection, document.id
    new_hash = document.content_hash()

    async with ledger.lock(document_id):
        if document_id in ledger:
            existing_hash = ledger.get(document_id)
        else:
            existing = await _call_store(
                "get", collection, document_id,
                client.get_thing(collection, document_id)
            )
            existing_hash = existing.content_hash() if existing is not None else None

        if existing_hash is None:
            if not dry_run:
                await _call_store(
                    "create", collection, document_id,
                    client.create_thing(collection, document_id, document.metadata, document.body)
                )
            ledger.record(document_id, new_hash)
            return UpsertOutcome.CREATED

        if skip_existing:
            logger.debug(f"Skipping existing {collection}/{document_id}")
            ledger.record(document_id, existing_hash)
            return UpsertOutcome.SKIPPED

        if existing_hash == new_hash:
            ledger.record(document_id, existing_hash)
            return UpsertOutcome.SKIPPED

        if not dry_run:
            await _call_store(
                "update", collection, document_id,
                client.update_thing(
                    collection, document_id,
                    metadata=document.metadata,
                    body=document.body
                )
            )
        ledger.record(document_id, new_hash)
        return UpsertOutcome.UPDATED


async def _call_store(operation: str, collection: str, document_id: str, call):
    try:
        return await call
    except StoreError:
        raise
    except Exception as e:
        raise StoreError(
            f"Store {operation} failed for {collection}/{document_id}",
            context={"operation": operation, "collection": collection, "document_id": document_id},
            original_exception=e
        )
