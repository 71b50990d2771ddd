"""
Zapier app directory records -> Apps documents
"""

from typing import Any, Dict, List
from schemas.document import Document
from ingestion.transformers.base import TransformContext, require, text


def transform_zapier_app(record: Dict[str, Any], context: TransformContext) -> Document:
    """Normalize one app from https://zapier.com/api/v4/apps/"""
    key = text(require(record, "key"))
    title = text(require(record, "title"))
    description = text(record.get("description"))

    categories = record.get("categories") or []
    images = record.get("images") or {}
    links = record.get("links") or {}

    metadata = {
        "id": record.get("id"),
        "key": key,
        "title": title,
        "description": description,
        "image": record.get("image"),
        "hexColor": record.get("hex_color"),
        "categories": [c.get("slug") for c in categories if isinstance(c, dict) and c.get("slug")],
        "api": record.get("api"),
        "images": images,
        "type": "ZapierApp",
        "source": "zapier.com",
    }

    lines: List[str] = [f"# {title}", "", description, "", "## Categories", ""]
    lines.extend(f"- {c.get('title')}" for c in categories if isinstance(c, dict) and c.get("title"))
    lines.extend(["", "## Resources", ""])
    if record.get("api"):
        lines.append(f"- [API Documentation]({record['api']})")
    if links.get("mutual_install"):
        lines.append(f"- [Install]({links['mutual_install']})")
    if images.get("url_128x128"):
        lines.extend(["", "## Images", "", f"![{title} Icon]({images['url_128x128']})"])

    return Document(
        id=key,
        collection=context.collection,
        metadata=metadata,
        body="\n".join(lines).strip()
    )
