"""
Loader over records that are already in memory
"""

from typing import List, Dict, Any
from copy import deepcopy
from ingestion.base import Loader, Page


class StaticLoader(Loader):
    """Yield a fixed list of records as one bulk page."""

    def __init__(self, source_name: str, records: List[Dict[str, Any]]):
        super().__init__(source_name)
        self.records = list(records)

    async def fetch_page(self) -> Page:
        return Page(records=deepcopy(self.records), done=True, cursor=None)
