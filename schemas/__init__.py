"""
Pydantic schemas for documents, run options and run reports.

Schemas:
    document: Normalized Document with content hashing
    results: ErrorDetail, MappingResult, PipelineRunResult
    options: PipelineOptions run-wide flags

Usage:
    from schemas.document import Document
    from schemas.results import MappingResult, PipelineRunResult
    from schemas.options import PipelineOptions

Example:
    doc = Document(
        id="Accepting",
        collection="Verbs",
        metadata={"source": "gs1"},
        body="# Accepting"
    )
    assert doc.content_hash() == doc.model_copy().content_hash()
"""

__all__ = [
    "Document",
    "ErrorDetail",
    "MappingResult",
    "PipelineRunResult",
    "PipelineOptions",
]
