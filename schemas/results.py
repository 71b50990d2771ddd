"""
Pydantic schemas for pipeline run reports
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from models.base import MappingStatus


class ErrorDetail(BaseModel):
    """One retained error for a mapping"""
    phase: str  # loader, fetch, transform, store
    item: Optional[str] = None
    error_type: str
    message: str
    status_code: Optional[int] = None
    retryable: bool = False  # transient failure; a later run may succeed


class MappingResult(BaseModel):
    """
    Counts for one mapping.

    processed == created + updated + skipped + errors always holds.
    """
    mapping_id: str
    collection: str
    status: MappingStatus = MappingStatus.PENDING
    dry_run: bool = False

    processed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    error_details: List[ErrorDetail] = Field(default_factory=list)

    pages_fetched: int = 0
    duration_seconds: float = 0.0

    @property
    def is_consistent(self) -> bool:
        return self.processed == self.created + self.updated + self.skipped + self.errors


class PipelineRunResult(BaseModel):
    """Aggregate report returned by run_import_pipeline"""
    started_at: datetime
    completed_at: datetime
    duration_seconds: float

    results: List[MappingResult] = Field(default_factory=list)

    total_processed: int = 0
    total_created: int = 0
    total_updated: int = 0
    total_skipped: int = 0
    total_errors: int = 0

    cancelled: bool = False
    success: bool = False

    def get(self, mapping_id: str) -> Optional[MappingResult]:
        """Result for one mapping id, if it ran"""
        for result in self.results:
            if result.mapping_id == mapping_id:
                return result
        return None
