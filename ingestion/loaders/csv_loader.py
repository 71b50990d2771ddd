"""
CSV/TSV bulk file loader
"""

import asyncio
import csv
import pandas as pd
from typing import List, Dict, Any, Optional
from pathlib import Path
from ingestion.base import Loader, Page
from core.exceptions import SourceFileError
import logging

logger = logging.getLogger(__name__)


class CSVLoader(Loader):
    """
    Load rows from a delimited export file.

    Supports:
    - CSV and TSV (any single-character delimiter)
    - Optional header normalization (strip, lowercase, spaces to underscores)
    - One bulk page by default, or fixed-size pages when page_size is set

    All cells are read as strings; empty cells become "".
    The file is read on the first page and again after reset().
    """

    def __init__(
        self,
        source_name: str,
        file_path: str,
        delimiter: str = ",",
        page_size: Optional[int] = None,
        normalize_columns: bool = False,
        quoting: int = csv.QUOTE_MINIMAL,
        encoding: str = "utf-8"
    ):
        super().__init__(source_name)
        if page_size is not None and page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.file_path = Path(file_path)
        self.delimiter = delimiter
        self.page_size = page_size
        self.normalize_columns = normalize_columns
        self.quoting = quoting
        self.encoding = encoding
        self._records: Optional[List[Dict[str, Any]]] = None
        self._position = 0

    def reset(self):
        super().reset()
        self._records = None
        self._position = 0

    async def fetch_page(self) -> Page:
        if self._records is None:
            self._records = await asyncio.to_thread(self._read_file)

        if self.page_size is None:
            batch = self._records[self._position:]
        else:
            batch = self._records[self._position:self._position + self.page_size]
        self._position += len(batch)

        done = self._position >= len(self._records)
        return Page(records=batch, done=done, cursor=str(self._position))

    def _read_file(self) -> List[Dict[str, Any]]:
        if not self.file_path.exists():
            raise SourceFileError(
                f"Source file not found: {self.file_path}",
                context={"file_path": str(self.file_path), "source_name": self.source_name}
            )

        logger.info(f"Reading {self.file_path}")

        try:
            df = pd.read_csv(
                self.file_path,
                sep=self.delimiter,
                dtype=str,
                keep_default_na=False,
                quoting=self.quoting,
                encoding=self.encoding,
                skip_blank_lines=True
            )
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            raise SourceFileError(
                f"Failed to parse {self.file_path}",
                context={"file_path": str(self.file_path), "source_name": self.source_name},
                original_exception=e
            )

        if self.normalize_columns:
            df.columns = df.columns.str.strip().str.lower().str.replace(" ", "_")
        else:
            df.columns = df.columns.str.strip()

        records = df.to_dict(orient="records")
        logger.info(f"Read {len(records)} records from {self.file_path.name}")
        return records
