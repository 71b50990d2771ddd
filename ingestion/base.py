"""
Abstract base class for paginated data sources
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)

RawRecord = Dict[str, Any]


@dataclass(frozen=True)
class Page:
    """One batch of raw records and the loader's position after it."""
    records: List[RawRecord] = field(default_factory=list)
    done: bool = False
    cursor: Optional[str] = None


class Loader(ABC):
    """
    Abstract base class for all source loaders.

    Responsibilities:
    - Hide pagination mechanics (page counters, offsets, cursors, next links)
    - Yield pages strictly in source order
    - Raise FetchError when a page cannot be retrieved

    A loader is owned by exactly one mapping. Once a page with done=True
    has been returned, further calls return an empty page with done=True.
    reset() rewinds to the initial cursor; a consumed page is never
    re-fetched otherwise.
    """

    def __init__(self, source_name: str):
        self.source_name = source_name
        self.pages_fetched = 0
        self._done = False

    @property
    def done(self) -> bool:
        return self._done

    async def next_page(self) -> Page:
        """
        Fetch the next page from the source.

        Returns:
            Page with records and the terminal flag

        Raises:
            FetchError: If the underlying call fails
        """
        if self._done:
            return Page(records=[], done=True)

        page = await self.fetch_page()
        self.pages_fetched += 1
        if page.done:
            self._done = True
        return page

    @abstractmethod
    async def fetch_page(self) -> Page:
        """Source-specific retrieval of the page at the current position"""
        pass

    def reset(self):
        """Rewind to the initial cursor"""
        self.pages_fetched = 0
        self._done = False

    async def close(self):
        """Release resources owned by the loader"""
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(source_name={self.source_name!r})"
