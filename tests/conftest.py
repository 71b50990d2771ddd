"""
Pytest configuration and fixtures
"""

import pytest
import pytest_asyncio
from typing import Any, Dict, List, Optional
from core.database import create_engine, create_session_maker, init_models
from core.exceptions import TransformError
from ingestion.base import Loader, Page
from ingestion.loaders.static_loader import StaticLoader
from ingestion.mapping import Mapping, MappingPolicy
from ingestion.transformers.base import TransformContext
from schemas.document import Document
from store.memory import InMemoryUpsertClient


class ListLoader(Loader):
    """Serves pre-built pages; raises an exception placed in the page list"""

    def __init__(self, pages: List[Any], source_name: str = "test"):
        super().__init__(source_name)
        self.pages = pages
        self.calls = 0
        self._index = 0

    def reset(self):
        super().reset()
        self._index = 0

    async def fetch_page(self) -> Page:
        self.calls += 1
        item = self.pages[self._index]
        self._index += 1
        if isinstance(item, Exception):
            raise item
        return Page(records=list(item), done=self._index >= len(self.pages))


def simple_transform(record: Dict[str, Any], context: TransformContext) -> Document:
    """{"id", "name", "body"} -> Document; records flagged "bad" are rejected"""
    if record.get("bad"):
        raise TransformError(record, "record flagged as bad")
    if "id" not in record:
        raise TransformError(record, "missing required field 'id'")
    return Document(
        id=record["id"],
        collection=context.collection,
        metadata={"name": record.get("name", "")},
        body=record.get("body", "")
    )


@pytest.fixture
def memory_client():
    """Empty in-memory store"""
    return InMemoryUpsertClient()


@pytest.fixture
def make_mapping():
    """Factory for mappings over in-memory records or explicit pages"""

    def factory(
        records: Optional[List[Dict[str, Any]]] = None,
        pages: Optional[List[Any]] = None,
        mapping_id: str = "things",
        collection: str = "Things",
        transform=simple_transform,
        policy: Optional[MappingPolicy] = None,
        loader=None
    ) -> Mapping:
        if loader is None:
            if pages is not None:
                loader = ListLoader(pages)
            else:
                loader = StaticLoader("test", records or [])
        return Mapping(
            id=mapping_id,
            collection=collection,
            loader=loader,
            transform=transform,
            policy=policy or MappingPolicy()
        )

    return factory


@pytest.fixture
def abc_records():
    """Three records A, B, C"""
    return [
        {"id": "A", "name": "Alpha", "body": "first"},
        {"id": "B", "name": "Bravo", "body": "second"},
        {"id": "C", "name": "Charlie", "body": "third"},
    ]


@pytest.fixture
def zapier_apps():
    """Apps as returned in the Zapier directory 'results' list"""
    return [
        {
            "id": 1,
            "key": "SlackAPI",
            "title": "Slack",
            "description": "Slack is a platform for team communication.",
            "image": "https://zapier-images.imgix.net/slack.png",
            "hex_color": "4a154b",
            "categories": [
                {"slug": "team-chat", "title": "Team Chat"},
                {"slug": "communication", "title": "Communication"}
            ],
            "api": "https://api.slack.com",
            "images": {"url_128x128": "https://zapier-images.imgix.net/slack-128.png"},
            "links": {"mutual_install": "https://zapier.com/apps/slack/integrations"}
        },
        {
            "id": 2,
            "key": "GoogleSheetsV2API",
            "title": "Google Sheets",
            "description": "Create, edit, and share spreadsheets.",
            "categories": [{"slug": "spreadsheets", "title": "Spreadsheets"}],
            "images": {},
            "links": {}
        },
    ]


@pytest_asyncio.fixture(scope="function")
async def sql_session_maker(tmp_path):
    """SQLite-backed session factory with the documents table created"""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'documents.db'}")
    await init_models(engine)

    yield create_session_maker(engine)

    await engine.dispose()
