"""
Feed entries -> documents keyed by a slug of the entry id
"""

from typing import Any, Dict
import hashlib
from schemas.document import Document
from ingestion.transformers.base import TransformContext, require, text


def transform_feed_entry(record: Dict[str, Any], context: TransformContext) -> Document:
    entry_id = text(require(record, "id"))
    title = text(require(record, "title"))
    summary = text(record.get("summary"))

    # Entry ids are usually URLs; hash them into a stable, path-safe id
    doc_id = hashlib.sha1(entry_id.encode("utf-8")).hexdigest()[:16]

    return Document(
        id=doc_id,
        collection=context.collection,
        metadata={
            "guid": entry_id,
            "title": title,
            "link": text(record.get("link")),
            "author": text(record.get("author")),
            "published": text(record.get("published")),
            "tags": list(record.get("tags") or []),
            "source": context.source_name,
        },
        body=f"# {title}\n\n{summary}".strip()
    )
