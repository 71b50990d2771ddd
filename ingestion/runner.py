"""
Import Pipeline - Orchestrates Load, Transform, Upsert for every mapping.

This module provides:
- Validation of the mapping selection before any loader runs
- Sequential page fetching per mapping, bounded concurrency per page
- Partial failure support (per-record errors never abort a mapping)
- Cancellation that lets in-flight records finish and fetches no new pages
- A PipelineRunResult for every run that gets past validation
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from ingestion.base import Loader, RawRecord
from ingestion.mapping import Mapping, MappingRegistry
from ingestion.aggregator import ResultAggregator
from ingestion.upsert import RunLedger, apply_upsert
from ingestion.transformers.base import TransformContext
from schemas.document import Document
from schemas.options import PipelineOptions
from schemas.results import PipelineRunResult
from store.base import UpsertClient
from models.base import MappingStatus
from core.exceptions import (
    ConfigurationError,
    FetchError,
    NonRetryableError,
    StoreError,
    TransformError,
    preview_record,
)
import logging

logger = logging.getLogger(__name__)

PROGRESS_INTERVAL = 100


class ImportPipeline:
    """
    Runs a list of mappings against one UpsertClient.

    Responsibilities:
    - Drive each mapping through Pending -> Running -> Completed/Failed/Cancelled
    - Pull pages strictly in source order
    - Transform and upsert the records of a page with a pool of
      options.record_concurrency workers
    - Run up to options.mapping_concurrency mappings at once
    - Count every outcome in the ResultAggregator
    """

    def __init__(
        self,
        client: UpsertClient,
        options: Optional[PipelineOptions] = None,
        cancel_event: Optional[asyncio.Event] = None
    ):
        self.client = client
        self.options = options or PipelineOptions()
        self.cancel_event = cancel_event or asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def cancel(self):
        """Stop starting records and pages; records already in flight still finish"""
        self.cancel_event.set()

    async def run(self, mappings: Sequence[Mapping]) -> PipelineRunResult:
        """
        Run every mapping and return the aggregate report.

        Raises:
            ConfigurationError: If the mapping list is invalid (raised before
                any loader is created)
        """
        mappings = validate_mappings(mappings)
        started_at = datetime.now(timezone.utc)
        aggregator = ResultAggregator(
            max_error_details=self.options.max_error_details,
            order=[m.id for m in mappings]
        )
        semaphore = asyncio.Semaphore(self.options.mapping_concurrency)

        logger.info(
            f"Starting import pipeline: {len(mappings)} mapping(s)"
            f"{' (dry run)' if self.options.dry_run else ''}"
        )

        async def guarded(mapping: Mapping):
            async with semaphore:
                if self.cancelled:
                    logger.warning(f"Cancelled before mapping {mapping.id} started")
                    return
                await self._run_mapping(mapping, aggregator)

        await asyncio.gather(*(guarded(m) for m in mappings))

        result = aggregator.build(started_at, cancelled=self.cancelled)
        if result.cancelled:
            logger.warning("Import pipeline cancelled")
        logger.info(
            f"Import pipeline finished in {result.duration_seconds:.2f}s: "
            f"{result.total_processed} processed, {result.total_created} created, "
            f"{result.total_updated} updated, {result.total_skipped} skipped, "
            f"{result.total_errors} errors"
        )
        return result

    # ------------------------------------------------------------------
    # One mapping
    # ------------------------------------------------------------------

    async def _run_mapping(self, mapping: Mapping, aggregator: ResultAggregator):
        dry_run = mapping.policy.resolve_dry_run(self.options.dry_run)
        skip_existing = mapping.policy.resolve_skip_existing(self.options.skip_existing)
        started = time.monotonic()

        aggregator.start_mapping(mapping.id, mapping.collection, dry_run=dry_run)
        logger.info(f"Running mapping {mapping.id} -> {mapping.collection}")

        try:
            loader = mapping.create_loader()
        except Exception as e:
            logger.error(
                f"Loader construction failed for {mapping.id}: {e}",
                extra={"error_context": {"mapping_id": mapping.id, "phase": "loader"}}
            )
            aggregator.record_error(mapping.id, "loader", e)
            aggregator.finish_mapping(mapping.id, MappingStatus.FAILED, time.monotonic() - started)
            return

        context = TransformContext(
            mapping_id=mapping.id,
            collection=mapping.collection,
            source_name=loader.source_name
        )
        status = MappingStatus.FAILED
        try:
            status = await self._consume(
                mapping, loader, context, aggregator,
                skip_existing=skip_existing,
                dry_run=dry_run
            )
        finally:
            aggregator.set_pages_fetched(mapping.id, loader.pages_fetched)
            await _close_loader(mapping, loader)
            aggregator.finish_mapping(mapping.id, status, time.monotonic() - started)

        summary = aggregator.snapshot(mapping.id)
        logger.info(
            f"Mapping {mapping.id} {summary.status.value}: "
            f"{summary.processed} processed, {summary.created} created, "
            f"{summary.updated} updated, {summary.skipped} skipped, "
            f"{summary.errors} errors ({summary.pages_fetched} pages)"
        )

    async def _consume(
        self,
        mapping: Mapping,
        loader: Loader,
        context: TransformContext,
        aggregator: ResultAggregator,
        skip_existing: bool,
        dry_run: bool
    ) -> MappingStatus:
        ledger = RunLedger()
        pages = 0
        last_fetch: Optional[float] = None

        while True:
            if self.cancelled:
                logger.warning(f"Mapping {mapping.id} cancelled after {pages} page(s)")
                return MappingStatus.CANCELLED

            last_fetch = await _throttle(mapping.policy.rate_limit, last_fetch)

            try:
                page = await loader.next_page()
            except Exception as e:
                error = e if isinstance(e, FetchError) else FetchError(
                    f"Loader failed: {e}",
                    context={"mapping_id": mapping.id, "source_name": loader.source_name},
                    original_exception=e
                )
                logger.error(
                    f"Fetch failed for {mapping.id} on page {pages + 1}: {error.message}",
                    extra={"error_context": error.to_dict()}
                )
                if isinstance(error, NonRetryableError):
                    logger.error(f"{mapping.id}: source rejected the request; rerunning will not help")
                aggregator.record_error(mapping.id, "fetch", error, item=f"page {pages + 1}")
                if pages == 0:
                    return MappingStatus.FAILED
                logger.warning(f"Abandoning remaining pages of {mapping.id}")
                return MappingStatus.COMPLETED

            pages += 1
            logger.debug(f"{mapping.id}: page {pages} with {len(page.records)} records")

            await self._process_page(
                mapping, page.records, context, aggregator, ledger,
                skip_existing=skip_existing,
                dry_run=dry_run
            )

            if self.cancelled:
                logger.warning(f"Mapping {mapping.id} cancelled during page {pages}")
                return MappingStatus.CANCELLED

            if page.done:
                return MappingStatus.COMPLETED

    async def _process_page(
        self,
        mapping: Mapping,
        records: List[RawRecord],
        context: TransformContext,
        aggregator: ResultAggregator,
        ledger: RunLedger,
        skip_existing: bool,
        dry_run: bool
    ):
        pending = iter(records)

        async def worker():
            # Workers share one iterator; records not yet taken when the
            # run is cancelled are never started and never counted
            for record in pending:
                if self.cancelled:
                    return
                await self._process_record(
                    mapping, record, context, aggregator, ledger,
                    skip_existing=skip_existing,
                    dry_run=dry_run
                )

        workers = min(self.options.record_concurrency, len(records))
        await asyncio.gather(*(worker() for _ in range(workers)))

    async def _process_record(
        self,
        mapping: Mapping,
        record: RawRecord,
        context: TransformContext,
        aggregator: ResultAggregator,
        ledger: RunLedger,
        skip_existing: bool,
        dry_run: bool
    ):
        try:
            document = transform_record(mapping, record, context)
        except TransformError as e:
            self._record_failure(mapping, aggregator, "transform", e, preview_record(record, 60))
            return

        try:
            outcome = await apply_upsert(
                self.client, document,
                skip_existing=skip_existing,
                dry_run=dry_run,
                ledger=ledger
            )
        except StoreError as e:
            self._record_failure(mapping, aggregator, "store", e, document.id)
            return

        processed = aggregator.record_outcome(mapping.id, outcome)
        if self.options.verbose:
            logger.info(f"{mapping.id}: {outcome.value} {document.id}")
        if processed % PROGRESS_INTERVAL == 0:
            logger.info(f"{mapping.id}: processed {processed} records")

    @staticmethod
    def _record_failure(
        mapping: Mapping,
        aggregator: ResultAggregator,
        phase: str,
        error: Exception,
        item: str
    ):
        error_context: Dict[str, Any] = {"mapping_id": mapping.id, "phase": phase, "item": item}
        logger.error(f"{phase.capitalize()} failed in {mapping.id} for {item}: {error}",
                     extra={"error_context": error_context})
        processed = aggregator.record_error(mapping.id, phase, error, item=item)
        if processed % PROGRESS_INTERVAL == 0:
            logger.info(f"{mapping.id}: processed {processed} records")


def transform_record(mapping: Mapping, record: RawRecord, context: TransformContext) -> Document:
    """
    Apply the mapping's transform and check the result.

    Raises:
        TransformError: For any failure, including a Document aimed at a
            different collection than the mapping's
    """
    try:
        document = mapping.transform(record, context)
    except TransformError:
        raise
    except Exception as e:
        raise TransformError(
            record,
            f"{type(e).__name__}: {e}",
            context={"mapping_id": mapping.id},
            original_exception=e
        )

    if not isinstance(document, Document):
        raise TransformError(
            record,
            f"transform returned {type(document).__name__}, expected Document",
            context={"mapping_id": mapping.id}
        )
    if document.collection != mapping.collection:
        raise TransformError(
            record,
            f"document collection '{document.collection}' does not match "
            f"mapping collection '{mapping.collection}'",
            context={"mapping_id": mapping.id, "document_id": document.id}
        )
    return document


def validate_mappings(mappings: Iterable[Mapping]) -> List[Mapping]:
    """
    Raises:
        ConfigurationError: For non-Mapping entries or duplicate ids
    """
    validated: List[Mapping] = []
    seen = set()
    for mapping in mappings:
        if not isinstance(mapping, Mapping):
            raise ConfigurationError(
                f"Expected a Mapping, got {type(mapping).__name__}",
                context={"value": preview_record(mapping)}
            )
        if mapping.id in seen:
            raise ConfigurationError(
                f"Duplicate mapping id: {mapping.id}",
                context={"mapping_id": mapping.id}
            )
        seen.add(mapping.id)
        validated.append(mapping)
    return validated


def select_mappings(
    mappings: Union[MappingRegistry, Sequence[Mapping]],
    only: Optional[Iterable[str]] = None
) -> List[Mapping]:
    """
    Narrow the configured mappings to the requested ids.

    Raises:
        ConfigurationError: If a requested id is not configured
    """
    if isinstance(mappings, MappingRegistry):
        return mappings.select(only)

    configured = validate_mappings(mappings)
    if not only:
        return configured

    requested = set(only)
    known = {m.id for m in configured}
    missing = [mapping_id for mapping_id in dict.fromkeys(only) if mapping_id not in known]
    if missing:
        raise ConfigurationError(
            f"No mapping found with id: {', '.join(missing)}",
            context={"requested": ", ".join(missing), "available": ", ".join(m.id for m in configured)}
        )
    return [m for m in configured if m.id in requested]


async def run_import_pipeline(
    mappings: Union[MappingRegistry, Sequence[Mapping]],
    client: UpsertClient,
    options: Optional[PipelineOptions] = None,
    only: Optional[Iterable[str]] = None,
    cancel_event: Optional[asyncio.Event] = None
) -> PipelineRunResult:
    """
    Select, validate and run mappings against the store.

    Args:
        mappings: Registry or ordered list of mapping declarations
        client: Store access shared by every mapping
        options: Run-wide flags (defaults from settings)
        only: Explicit subset of mapping ids to run
        cancel_event: Set it to stop the run gracefully

    Returns:
        PipelineRunResult, also for runs with failed mappings

    Raises:
        ConfigurationError: Unknown, unavailable or invalid mappings;
            raised before any loader runs
    """
    selected = select_mappings(mappings, only)
    pipeline = ImportPipeline(client, options=options, cancel_event=cancel_event)
    return await pipeline.run(selected)


async def _throttle(rate_limit: Optional[float], last_fetch: Optional[float]) -> float:
    """Sleep so page fetches stay under rate_limit per second"""
    if rate_limit and last_fetch is not None:
        wait = 1.0 / rate_limit - (time.monotonic() - last_fetch)
        if wait > 0:
            await asyncio.sleep(wait)
    return time.monotonic()


async def _close_loader(mapping: Mapping, loader: Loader):
    try:
        await loader.close()
    except Exception as e:
        logger.warning(f"Failed to close loader for {mapping.id}: {e}")
