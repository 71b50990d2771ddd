"""
GS1 Core Business Vocabulary entries -> Verbs, Dispositions, EventTypes
"""

from typing import Any, Dict
from schemas.document import Document
from ingestion.transformers.base import TransformContext, generate_slug, require, text


def _vocabulary_document(
    record: Dict[str, Any],
    context: TransformContext,
    vocabulary_type: str,
    extra_sections: str = ""
) -> Document:
    name = text(require(record, "id"))
    description = text(require(record, "description"))

    metadata = {
        "name": name,
        "description": description,
        "type": vocabulary_type,
        "source": "gs1",
        "vocabulary": "CBV",
    }
    if record.get("dimensions"):
        metadata["dimensions"] = text(record["dimensions"])

    body = f"# {name}\n\n{description}\n{extra_sections}".strip()
    return Document(
        id=generate_slug(name),
        collection=context.collection,
        metadata=metadata,
        body=body
    )


def transform_business_step(record: Dict[str, Any], context: TransformContext) -> Document:
    return _vocabulary_document(record, context, "BusinessStep")


def transform_disposition(record: Dict[str, Any], context: TransformContext) -> Document:
    return _vocabulary_document(record, context, "Disposition")


def transform_event_type(record: Dict[str, Any], context: TransformContext) -> Document:
    dimensions = text(record.get("dimensions"))
    extra = f"\n## Dimensions\n\n{dimensions}" if dimensions else ""
    return _vocabulary_document(record, context, "EventType", extra)
