"""
RSS/Atom feed loader

Fetches a feed in one request and yields all entries as a single page.
"""

import asyncio
import feedparser
import httpx
from typing import List, Dict, Any, Optional
from ingestion.base import Loader, Page
from core.config import settings
from core.exceptions import FetchError, NetworkError
import logging

logger = logging.getLogger(__name__)


class FeedLoader(Loader):
    """Load entries from an RSS or Atom feed"""

    def __init__(
        self,
        source_name: str,
        feed_url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None
    ):
        super().__init__(source_name)
        self.feed_url = feed_url
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT
        self._client = client
        self._owns_client = client is None

    async def close(self):
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_page(self) -> Page:
        """
        Fetch and parse the feed.

        Raises:
            FetchError: On HTTP errors or unparseable feeds
        """
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)

        try:
            response = await self._client.get(self.feed_url)
        except httpx.TransportError as e:
            raise NetworkError(
                f"Failed to fetch feed {self.feed_url}",
                context={"feed_url": self.feed_url, "source_name": self.source_name},
                original_exception=e
            )

        if response.status_code >= 400:
            raise FetchError(
                f"Feed request failed with HTTP {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
                context={"feed_url": self.feed_url, "source_name": self.source_name}
            )

        # Parse feed in thread pool
        feed = await asyncio.to_thread(feedparser.parse, response.text)

        if feed.bozo and not feed.entries:
            raise FetchError(
                f"Failed to parse feed: {feed.bozo_exception}",
                status_code=response.status_code,
                response_body=response.text,
                context={"feed_url": self.feed_url, "source_name": self.source_name}
            )

        entries = [_entry_to_record(entry) for entry in feed.entries]
        logger.info(f"Fetched {len(entries)} entries from {self.feed_url}")
        return Page(records=entries, done=True)


def _entry_to_record(entry) -> Dict[str, Any]:
    tags: List[str] = [
        tag.get("term") for tag in entry.get("tags", []) if tag.get("term")
    ]
    return {
        "id": entry.get("id", entry.get("link", "")),
        "title": entry.get("title", ""),
        "summary": entry.get("summary", ""),
        "link": entry.get("link", ""),
        "author": entry.get("author", ""),
        "published": entry.get("published", ""),
        "tags": tags,
    }
