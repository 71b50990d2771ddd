"""
Thread-safe accumulation of per-mapping counts
"""

import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence
from schemas.results import ErrorDetail, MappingResult, PipelineRunResult
from models.base import MappingStatus, UpsertOutcome
from core.exceptions import PipelineError, RetryableError


class ResultAggregator:
    """
    Collects outcomes while records stream through and assembles the final
    PipelineRunResult.

    Every mutation goes through one lock, so records processed concurrently
    (tasks or worker threads) never lose an increment. error_details keeps
    the first max_error_details errors per mapping; later errors are only
    counted.
    """

    def __init__(self, max_error_details: int = 100, order: Optional[Sequence[str]] = None):
        self.max_error_details = max_error_details
        self._lock = threading.Lock()
        self._results: Dict[str, MappingResult] = {}
        self._order = {mapping_id: index for index, mapping_id in enumerate(order or [])}

    def start_mapping(self, mapping_id: str, collection: str, dry_run: bool = False) -> None:
        with self._lock:
            self._results[mapping_id] = MappingResult(
                mapping_id=mapping_id,
                collection=collection,
                status=MappingStatus.RUNNING,
                dry_run=dry_run
            )
            self._order.setdefault(mapping_id, len(self._order))

    def record_outcome(self, mapping_id: str, outcome: UpsertOutcome) -> int:
        """Count one record; returns the mapping's processed total"""
        with self._lock:
            return _count(self._results[mapping_id], outcome)

    def record_error(
        self,
        mapping_id: str,
        phase: str,
        error: Exception,
        item: Optional[str] = None
    ) -> int:
        """Count one failed unit in the errors bucket; returns the processed total"""
        with self._lock:
            result = self._results[mapping_id]
            processed = _count(result, UpsertOutcome.ERROR)
            if len(result.error_details) < self.max_error_details:
                result.error_details.append(_error_detail(phase, error, item))
            return processed

    def set_pages_fetched(self, mapping_id: str, pages: int) -> None:
        with self._lock:
            self._results[mapping_id].pages_fetched = pages

    def finish_mapping(self, mapping_id: str, status: MappingStatus, duration_seconds: float) -> None:
        with self._lock:
            result = self._results[mapping_id]
            result.status = status
            result.duration_seconds = round(duration_seconds, 3)

    def snapshot(self, mapping_id: str) -> MappingResult:
        with self._lock:
            return self._results[mapping_id].model_copy(deep=True)

    def build(self, started_at: datetime, cancelled: bool = False) -> PipelineRunResult:
        completed_at = datetime.now(timezone.utc)
        with self._lock:
            results: List[MappingResult] = sorted(
                (r.model_copy(deep=True) for r in self._results.values()),
                key=lambda r: self._order[r.mapping_id]
            )

        success = not cancelled and all(
            r.errors == 0 and r.status == MappingStatus.COMPLETED for r in results
        )

        return PipelineRunResult(
            started_at=started_at,
            completed_at=completed_at,
            duration_seconds=(completed_at - started_at).total_seconds(),
            results=results,
            total_processed=sum(r.processed for r in results),
            total_created=sum(r.created for r in results),
            total_updated=sum(r.updated for r in results),
            total_skipped=sum(r.skipped for r in results),
            total_errors=sum(r.errors for r in results),
            cancelled=cancelled,
            success=success
        )


def _count(result: MappingResult, outcome: UpsertOutcome) -> int:
    result.processed += 1
    if outcome == UpsertOutcome.CREATED:
        result.created += 1
    elif outcome == UpsertOutcome.UPDATED:
        result.updated += 1
    elif outcome == UpsertOutcome.SKIPPED:
        result.skipped += 1
    else:
        result.errors += 1
    return result.processed


def _error_detail(phase: str, error: Exception, item: Optional[str]) -> ErrorDetail:
    message = error.message if isinstance(error, PipelineError) else str(error)
    return ErrorDetail(
        phase=phase,
        item=item,
        error_type=type(error).__name__,
        message=message,
        status_code=getattr(error, "status_code", None),
        retryable=isinstance(error, RetryableError)
    )
