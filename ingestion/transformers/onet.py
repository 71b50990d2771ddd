"""
O*NET database rows -> Occupations and Tasks documents
"""

from typing import Any, Dict
from schemas.document import Document
from core.exceptions import TransformError
from ingestion.transformers.base import TransformContext, generate_slug, require, text

ONET_VERSION = "30.0"


def transform_occupation(record: Dict[str, Any], context: TransformContext) -> Document:
    """Row of 'Occupation Data.txt'"""
    code = text(require(record, "O*NET-SOC Code"))
    title = text(require(record, "Title"))
    description = text(record.get("Description"))

    body = "\n".join([
        f"# {title}",
        "",
        f"**O*NET-SOC Code:** `{code}`",
        "",
        "## Description",
        "",
        description,
        "",
        "## References",
        "",
        f"- [O*NET Online](https://www.onetonline.org/link/summary/{code})",
    ])

    return Document(
        id=generate_slug(title),
        collection=context.collection,
        metadata={
            "code": code,
            "title": title,
            "description": description,
            "source": "onet",
            "version": ONET_VERSION,
        },
        body=body
    )


def transform_task(record: Dict[str, Any], context: TransformContext) -> Document:
    """Row of 'Task Statements.txt'"""
    task_id = text(require(record, "Task ID"))
    occupation_code = text(require(record, "O*NET-SOC Code"))
    statement = text(require(record, "Task"))
    task_type = text(record.get("Task Type"))

    raw_incumbents = text(record.get("Incumbents Responding")) or "0"
    try:
        incumbents = float(raw_incumbents)
    except ValueError:
        raise TransformError(record, f"invalid 'Incumbents Responding' value '{raw_incumbents}'")

    body = "\n".join([
        f"# {statement}",
        "",
        f"**Task ID:** {task_id}",
        f"**Occupation:** `{occupation_code}`",
        "",
        "## Details",
        "",
        f"- **Type:** {task_type or 'Unspecified'}",
        f"- **Performed By:** {incumbents:.1f}% of incumbents",
    ])

    return Document(
        id=task_id,
        collection=context.collection,
        metadata={
            "taskId": task_id,
            "occupationCode": occupation_code,
            "statement": statement,
            "taskType": task_type,
            "incumbentsResponding": incumbents,
            "source": "onet",
        },
        body=body
    )
