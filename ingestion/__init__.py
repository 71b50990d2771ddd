"""
Import pipeline components.

Modules:
    base: Loader contract and Page
    mapping: Mapping declarations, per-mapping policy and the registry
    upsert: Create/update/skip decision and the per-run ledger
    aggregator: Thread-safe per-mapping counts
    runner: ImportPipeline and run_import_pipeline
    catalog: Mappings for Zapier, GS1, O*NET and NAICS
    vocabularies: GS1 CBV terms
    report: Console rendering of a run result

Subpackages:
    loaders: Reference loaders (REST API, CSV/TSV, RSS/Atom, static)
    transformers: Transform functions, one module per source

Architecture:
    For every selected mapping the pipeline pulls pages in order from its
    loader, transforms each record into a Document, and upserts it:

    1. Load - Fetch the next page; a failing first page fails the mapping
    2. Transform - Pure record -> Document; failures are per-record errors
    3. Upsert - Create, update or skip by content hash; failures are per-record errors

    A PipelineRunResult is always returned once the selection is valid.

Usage:
    from ingestion.catalog import build_registry
    from ingestion.runner import run_import_pipeline
    from store.memory import InMemoryUpsertClient

Example:
    registry = build_registry()
    result = await run_import_pipeline(
        registry,
        InMemoryUpsertClient(),
        options=PipelineOptions(dry_run=True),
        only=["gs1-verbs"]
    )

    print(f"Would create {result.total_created} documents")
"""

__all__ = [
    "Loader",
    "Page",
    "Mapping",
    "MappingPolicy",
    "MappingRegistry",
    "RunLedger",
    "apply_upsert",
    "ResultAggregator",
    "ImportPipeline",
    "run_import_pipeline",
    "build_registry",
    "format_report",
]
