"""
Shared pieces for transforms: context, type alias, field validation, slugs
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
from schemas.document import Document
from core.exceptions import TransformError
import re


@dataclass(frozen=True)
class TransformContext:
    """What a transform knows about the mapping it runs under"""
    mapping_id: str
    collection: str
    source_name: str


# Pure, synchronous: one raw record in, one Document out (or TransformError)
Transform = Callable[[Dict[str, Any], TransformContext], Document]


def require(record: Dict[str, Any], field: str) -> Any:
    """Return a required field or raise TransformError if missing/blank"""
    if not isinstance(record, dict):
        raise TransformError(record, f"expected a mapping, got {type(record).__name__}")
    value = record.get(field)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise TransformError(record, f"missing required field '{field}'")
    return value


def text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def generate_slug(value: str, max_length: Optional[int] = None) -> str:
    """
    Wikipedia-style slug that keeps title case.

    "Software Developers, Applications" -> "Software_Developers_Applications"
    """
    slug = re.sub(r"\s+", "_", value.strip())
    slug = re.sub(r"[,/\\]", "", slug)
    slug = re.sub(r"[()]", "", slug)
    slug = slug.replace("&", "and")
    slug = re.sub(r"_+", "_", slug)
    slug = slug.strip("_")

    if max_length:
        slug = slug[:max_length].rstrip("_")

    return slug
