"""
Unit tests for the upsert decision
"""

import asyncio
import pytest
from unittest.mock import AsyncMock
from core.exceptions import StoreError
from ingestion.upsert import RunLedger, apply_upsert
from models.base import UpsertOutcome
from schemas.document import Document
from store.memory import InMemoryUpsertClient


def doc(id: str = "A", body: str = "first", name: str = "Alpha") -> Document:
    return Document(id=id, collection="Things", metadata={"name": name}, body=body)


class TestApplyUpsert:
    """Test create/update/skip classification"""

    @pytest.mark.asyncio
    async def test_absent_document_is_created(self, memory_client):
        outcome = await apply_upsert(memory_client, doc())

        # Assertions
        assert outcome == UpsertOutcome.CREATED
        assert memory_client.writes == [("create", "Things", "A")]
        assert (await memory_client.get_thing("Things", "A")).body == "first"

    @pytest.mark.asyncio
    async def test_unchanged_document_is_skipped(self):
        client = InMemoryUpsertClient([doc()])

        outcome = await apply_upsert(client, doc())

        assert outcome == UpsertOutcome.SKIPPED
        assert client.writes == []

    @pytest.mark.asyncio
    async def test_metadata_key_order_does_not_matter(self):
        stored = Document(id="A", collection="Things", metadata={"a": 1, "b": 2}, body="x")
        client = InMemoryUpsertClient([stored])

        outcome = await apply_upsert(
            client,
            Document(id="A", collection="Things", metadata={"b": 2, "a": 1}, body="x")
        )

        assert outcome == UpsertOutcome.SKIPPED

    @pytest.mark.asyncio
    async def test_changed_document_is_updated(self):
        client = InMemoryUpsertClient([doc()])

        outcome = await apply_upsert(client, doc(body="changed"))

        assert outcome == UpsertOutcome.UPDATED
        assert client.writes == [("update", "Things", "A")]
        assert (await client.get_thing("Things", "A")).body == "changed"

    @pytest.mark.asyncio
    async def test_skip_existing_never_updates(self):
        """skip_existing overrides the content comparison"""
        client = InMemoryUpsertClient([doc()])

        outcome = await apply_upsert(client, doc(body="changed"), skip_existing=True)

        assert outcome == UpsertOutcome.SKIPPED
        assert client.writes == []
        assert (await client.get_thing("Things", "A")).body == "first"

    @pytest.mark.asyncio
    async def test_skip_existing_still_creates(self, memory_client):
        outcome = await apply_upsert(memory_client, doc(), skip_existing=True)

        assert outcome == UpsertOutcome.CREATED

    @pytest.mark.asyncio
    async def test_dry_run_classifies_without_writing(self):
        client = InMemoryUpsertClient([doc("A")])

        created = await apply_upsert(client, doc("B"), dry_run=True)
        updated = await apply_upsert(client, doc("A", body="changed"), dry_run=True)
        skipped = await apply_upsert(client, doc("A"), dry_run=True)

        assert (created, updated, skipped) == (
            UpsertOutcome.CREATED, UpsertOutcome.UPDATED, UpsertOutcome.SKIPPED
        )
        assert client.writes == []
        assert len(client) == 1

    @pytest.mark.asyncio
    async def test_store_error_propagates(self):
        client = AsyncMock()
        client.get_thing.side_effect = StoreError("store unreachable")

        with pytest.raises(StoreError, match="store unreachable"):
            await apply_upsert(client, doc())

    @pytest.mark.asyncio
    async def test_unexpected_client_error_becomes_store_error(self):
        client = AsyncMock()
        client.get_thing.return_value = None
        client.create_thing.side_effect = ConnectionResetError("reset by peer")

        with pytest.raises(StoreError) as exc_info:
            await apply_upsert(client, doc())

        assert exc_info.value.context["operation"] == "create"
        assert isinstance(exc_info.value.original_exception, ConnectionResetError)


class TestRunLedger:
    """Test duplicate ids within one run"""

    @pytest.mark.asyncio
    async def test_duplicate_id_in_dry_run_matches_live_run(self):
        """Second record with the same id is classified against the first"""
        live_client = InMemoryUpsertClient()
        dry_client = InMemoryUpsertClient()
        records = [doc("A"), doc("A", body="second version"), doc("A", body="second version")]

        live_ledger, dry_ledger = RunLedger(), RunLedger()
        live = [await apply_upsert(live_client, d, ledger=live_ledger) for d in records]
        dry = [await apply_upsert(dry_client, d, dry_run=True, ledger=dry_ledger) for d in records]

        assert live == [UpsertOutcome.CREATED, UpsertOutcome.UPDATED, UpsertOutcome.SKIPPED]
        assert dry == live
        assert dry_client.writes == []

    @pytest.mark.asyncio
    async def test_concurrent_records_with_same_id_create_once(self, memory_client):
        ledger = RunLedger()

        outcomes = await asyncio.gather(*(
            apply_upsert(memory_client, doc("A"), ledger=ledger) for _ in range(5)
        ))

        assert outcomes.count(UpsertOutcome.CREATED) == 1
        assert outcomes.count(UpsertOutcome.SKIPPED) == 4
        assert memory_client.writes == [("create", "Things", "A")]

    def test_record_and_lookup(self):
        ledger = RunLedger()
        ledger.record("A", "hash-a")

        assert "A" in ledger
        assert ledger.get("A") == "hash-a"
        assert ledger.get("B") is None
        assert len(ledger) == 1
