"""
Tests for failure scenarios, error handling and cancellation
"""

import asyncio
import pytest
import httpx
from unittest.mock import AsyncMock
from core.exceptions import FetchError, StoreError
from ingestion.base import Loader, Page
from ingestion.loaders.api_loader import PaginatedAPILoader
from ingestion.mapping import Mapping
from ingestion.runner import ImportPipeline, run_import_pipeline
from ingestion.transformers.zapier import transform_zapier_app
from models.base import MappingStatus
from schemas.document import Document
from schemas.options import PipelineOptions
from store.memory import InMemoryUpsertClient


@pytest.mark.asyncio
async def test_first_page_failure_fails_only_that_mapping(memory_client, make_mapping, abc_records):
    """
    Test: source is down; the mapping fails, the next mapping still runs
    """
    failing = make_mapping(pages=[FetchError("Connection refused")], mapping_id="down")
    healthy = make_mapping(abc_records, mapping_id="up", collection="Up")

    result = await run_import_pipeline([failing, healthy], memory_client)

    down = result.get("down")
    assert down.status == MappingStatus.FAILED
    assert (down.processed, down.errors) == (1, 1)
    assert down.error_details[0].phase == "fetch"
    assert down.error_details[0].message == "Connection refused"
    assert down.is_consistent

    assert result.get("up").created == 3
    assert result.success is False


@pytest.mark.asyncio
async def test_mid_run_failure_abandons_remaining_pages(memory_client, make_mapping):
    """
    Test: page 2 fails; page 1 is kept, page 3 is never fetched
    """
    mapping = make_mapping(pages=[
        [{"id": "A"}, {"id": "B"}],
        FetchError("HTTP 502", status_code=502),
        [{"id": "C"}],
    ])
    loader = mapping.loader

    result = await run_import_pipeline([mapping], memory_client)
    things = result.get("things")

    assert things.status == MappingStatus.COMPLETED
    assert (things.processed, things.created, things.errors) == (3, 2, 1)
    assert things.error_details[0].item == "page 2"
    assert things.error_details[0].status_code == 502
    assert loader.calls == 2
    assert await memory_client.get_thing("Things", "C") is None


@pytest.mark.asyncio
async def test_http_source_failing_mid_pagination(memory_client, zapier_apps):
    """
    Test: real HTTP loader, second page returns 500 after retries
    """
    def handler(request):
        if request.url.params.get("offset"):
            return httpx.Response(500, text="Internal Server Error")
        return httpx.Response(200, json={
            "next": "https://zapier.example.com/api/v4/apps/?limit=2&offset=2",
            "results": zapier_apps
        })

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    mapping = Mapping(
        id="zapier-apps",
        collection="Apps",
        loader=lambda: PaginatedAPILoader(
            source_name="zapier",
            api_url="https://zapier.example.com/api/v4/apps/",
            pagination="next_url",
            page_size=2,
            records_key="results",
            client=client,
            max_retries=2,
            retry_delay=0
        ),
        transform=transform_zapier_app
    )

    result = await run_import_pipeline([mapping], memory_client)
    apps = result.get("zapier-apps")

    assert (apps.created, apps.errors, apps.processed) == (2, 1, 3)
    assert apps.pages_fetched == 1
    assert apps.error_details[0].error_type == "NetworkError"
    assert {d.id for d in memory_client.documents("Apps")} == {"SlackAPI", "GoogleSheetsV2API"}
    await client.aclose()


@pytest.mark.asyncio
async def test_loader_construction_failure(memory_client):
    """Test: a loader factory that raises marks the mapping failed"""
    def broken_factory():
        raise ValueError("credentials missing")

    mapping = Mapping(id="broken", collection="Things", loader=broken_factory,
                      transform=lambda r, c: None)

    result = await run_import_pipeline([mapping], memory_client)
    broken = result.get("broken")

    assert broken.status == MappingStatus.FAILED
    assert broken.error_details[0].phase == "loader"
    assert broken.error_details[0].message == "credentials missing"
    assert broken.is_consistent


@pytest.mark.asyncio
async def test_unexpected_loader_exception_is_wrapped(memory_client, make_mapping):
    mapping = make_mapping(pages=[RuntimeError("socket closed")])

    result = await run_import_pipeline([mapping], memory_client)

    detail = result.get("things").error_details[0]
    assert detail.error_type == "FetchError"
    assert "socket closed" in detail.message


@pytest.mark.asyncio
async def test_transform_exceptions_are_per_record(memory_client, make_mapping):
    """Test: a transform raising KeyError is recorded as a TransformError"""
    def strict_transform(record, context):
        return Document(id=record["key"], collection=context.collection, body="")

    mapping = make_mapping([{"key": "A"}, {"nokey": 1}, {"key": "C"}], transform=strict_transform)

    result = await run_import_pipeline([mapping], memory_client)
    things = result.get("things")

    assert (things.created, things.errors) == (2, 1)
    assert things.error_details[0].error_type == "TransformError"
    assert "KeyError" in things.error_details[0].message


@pytest.mark.asyncio
async def test_document_for_wrong_collection_is_rejected(memory_client, make_mapping):
    def misrouted(record, context):
        return Document(id=record["id"], collection="Elsewhere", body="")

    result = await run_import_pipeline([make_mapping([{"id": "A"}], transform=misrouted)], memory_client)

    assert result.get("things").errors == 1
    assert memory_client.documents("Elsewhere") == []


@pytest.mark.asyncio
async def test_store_failure_is_per_record(make_mapping, abc_records):
    """Test: store rejects one write; the other records still land"""
    client = InMemoryUpsertClient()
    real_create = client.create_thing

    async def flaky_create(collection, id, metadata, body):
        if id == "B":
            raise StoreError("validation rejected by store", context={"document_id": id})
        return await real_create(collection, id, metadata, body)

    client.create_thing = flaky_create

    result = await run_import_pipeline([make_mapping(abc_records)], client)
    things = result.get("things")

    assert (things.created, things.errors) == (2, 1)
    assert things.error_details[0].phase == "store"
    assert things.error_details[0].item == "B"


@pytest.mark.asyncio
async def test_unreachable_store_never_raises(make_mapping, abc_records):
    """Test: every store call fails; the run still returns a report"""
    client = AsyncMock()
    client.get_thing.side_effect = ConnectionRefusedError("store unreachable")

    result = await run_import_pipeline([make_mapping(abc_records)], client)

    assert result.get("things").errors == 3
    assert result.get("things").error_details[0].error_type == "StoreError"
    assert result.success is False


@pytest.mark.asyncio
async def test_error_details_are_capped(memory_client, make_mapping):
    records = [{"id": f"r{i}", "bad": True} for i in range(30)]

    result = await run_import_pipeline(
        [make_mapping(records)], memory_client, options=PipelineOptions(max_error_details=5)
    )

    assert result.get("things").errors == 30
    assert len(result.get("things").error_details) == 5


@pytest.mark.asyncio
async def test_cancel_before_start(memory_client, make_mapping, abc_records):
    """Test: a pre-set cancellation runs nothing and reports cancelled"""
    cancel_event = asyncio.Event()
    cancel_event.set()

    result = await run_import_pipeline(
        [make_mapping(abc_records)], memory_client, cancel_event=cancel_event
    )

    assert result.cancelled is True
    assert result.success is False
    assert result.results == []
    assert memory_client.writes == []


class CancellingLoader(Loader):
    """Two pages; requests cancellation while serving the first"""

    def __init__(self, cancel_event: asyncio.Event):
        super().__init__("test")
        self.cancel_event = cancel_event
        self.calls = 0

    async def fetch_page(self) -> Page:
        self.calls += 1
        if self.calls == 1:
            self.cancel_event.set()
            return Page(records=[{"id": "A"}, {"id": "B"}], done=False)
        return Page(records=[{"id": "C"}], done=True)


class CancellingClient(InMemoryUpsertClient):
    """Requests cancellation as soon as the first document is created"""

    def __init__(self, cancel_event: asyncio.Event):
        super().__init__()
        self.cancel_event = cancel_event

    async def create_thing(self, collection, id, metadata, body):
        document = await super().create_thing(collection, id, metadata, body)
        self.cancel_event.set()
        return document


@pytest.mark.asyncio
async def test_cancel_during_fetch_starts_no_records(memory_client, make_mapping):
    """
    Test: cancellation while page 1 is fetched; its records are never started
    """
    cancel_event = asyncio.Event()
    loader = CancellingLoader(cancel_event)
    first = make_mapping(loader=loader)
    second = make_mapping([{"id": "Z"}], mapping_id="later", collection="Later")

    pipeline = ImportPipeline(memory_client, cancel_event=cancel_event)
    result = await pipeline.run([first, second])
    things = result.get("things")

    assert result.cancelled is True
    assert result.success is False
    assert things.status == MappingStatus.CANCELLED
    assert things.processed == 0
    assert loader.calls == 1
    assert result.get("later") is None
    assert memory_client.writes == []


@pytest.mark.asyncio
async def test_cancel_mid_page_finishes_in_flight_records(make_mapping):
    """
    Test: cancellation during page 1 lets the started record finish and
    fetches nothing more
    """
    cancel_event = asyncio.Event()
    client = CancellingClient(cancel_event)
    mapping = make_mapping(pages=[[{"id": "A"}, {"id": "B"}], [{"id": "C"}]])
    loader = mapping.loader

    pipeline = ImportPipeline(
        client, options=PipelineOptions(record_concurrency=1), cancel_event=cancel_event
    )
    result = await pipeline.run([mapping])
    things = result.get("things")

    assert things.status == MappingStatus.CANCELLED
    assert (things.processed, things.created) == (1, 1)
    assert things.is_consistent
    assert loader.calls == 1
    assert client.writes == [("create", "Things", "A")]


@pytest.mark.asyncio
async def test_cancel_stops_a_single_page_bulk_source(make_mapping):
    """
    Test: a bulk source delivered as one page stops at cancellation instead
    of writing every remaining record
    """
    cancel_event = asyncio.Event()
    client = CancellingClient(cancel_event)
    records = [{"id": f"term{i}", "name": f"Term {i}"} for i in range(50)]

    result = await run_import_pipeline(
        [make_mapping(records)],
        client,
        options=PipelineOptions(record_concurrency=1),
        cancel_event=cancel_event
    )
    things = result.get("things")

    assert result.cancelled is True
    assert things.status == MappingStatus.CANCELLED
    assert len(client.writes) == 1
    assert things.processed == things.created == 1


@pytest.mark.asyncio
async def test_cancel_with_worker_pool_bounds_extra_writes(make_mapping):
    cancel_event = asyncio.Event()
    client = CancellingClient(cancel_event)
    records = [{"id": f"term{i}", "name": f"Term {i}"} for i in range(50)]

    result = await run_import_pipeline(
        [make_mapping(records)],
        client,
        options=PipelineOptions(record_concurrency=4),
        cancel_event=cancel_event
    )
    things = result.get("things")

    assert things.status == MappingStatus.CANCELLED
    assert 1 <= len(client.writes) <= 4
    assert things.processed == things.created == len(client.writes)


@pytest.mark.asyncio
async def test_pipeline_cancel_method(memory_client, make_mapping, abc_records):
    pipeline = ImportPipeline(memory_client)
    pipeline.cancel()

    result = await pipeline.run([make_mapping(abc_records)])

    assert pipeline.cancelled is True
    assert result.cancelled is True
