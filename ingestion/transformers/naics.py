"""
NAICS classification rows -> Industries documents
"""

from typing import Any, Dict
from schemas.document import Document
from core.exceptions import TransformError
from ingestion.transformers.base import TransformContext, text

NAICS_VERSION = "2022"

LEVEL_NAMES = {
    2: "Sector",
    3: "Subsector",
    4: "Industry Group",
    5: "NAICS Industry",
    6: "National Industry",
}


def transform_industry(record: Dict[str, Any], context: TransformContext) -> Document:
    code = text(record.get("naics") or record.get("NAICS Code"))
    title = text(record.get("industry") or record.get("NAICS Title"))
    if not code or not title:
        raise TransformError(record, "missing NAICS code or title")
    if not code.isdigit():
        raise TransformError(record, f"invalid NAICS code '{code}'")

    level = len(code)
    parent_code = code[:-1] if level > 2 else None
    level_name = LEVEL_NAMES.get(level, "National Industry")

    lines = [
        f"# {title}",
        "",
        f"**NAICS Code:** `{code}` ({level}-digit {level_name})",
        "",
        "## Classification",
        "",
        f"- **Parent Industry:** {parent_code}" if parent_code else "- **Level:** Sector (top level)",
        f"- **Sector:** {code[:2]}",
    ]

    return Document(
        id=code,
        collection=context.collection,
        metadata={
            "naicsCode": code,
            "title": title,
            "level": level,
            "parentCode": parent_code,
            "sectorCode": code[:2],
            "source": "naics",
            "version": NAICS_VERSION,
        },
        body="\n".join(lines)
    )
