"""
Console rendering of a PipelineRunResult
"""

from typing import List
from schemas.results import PipelineRunResult

MAX_ERRORS_SHOWN = 5
RULE = "=" * 60


def format_report(result: PipelineRunResult, max_errors: int = MAX_ERRORS_SHOWN) -> str:
    """Human-readable summary: one block per mapping, then the totals"""
    lines: List[str] = ["", RULE, "Import Results", RULE]

    for mapping in result.results:
        header = f"{mapping.mapping_id} -> {mapping.collection} [{mapping.status.value}]"
        if mapping.dry_run:
            header += " (dry run)"
        lines.extend([
            "",
            header,
            f"  Processed: {mapping.processed}",
            f"  Created:   {mapping.created}",
            f"  Updated:   {mapping.updated}",
            f"  Skipped:   {mapping.skipped}",
            f"  Errors:    {mapping.errors}",
            f"  Pages:     {mapping.pages_fetched}",
            f"  Duration:  {mapping.duration_seconds:.2f}s",
        ])

        if mapping.error_details:
            lines.append("  Error details:")
            for detail in mapping.error_details[:max_errors]:
                item = f"{detail.item}: " if detail.item else ""
                lines.append(f"    - [{detail.phase}] {item}{detail.error_type}: {detail.message}"
                             f"{' (retryable)' if detail.retryable else ''}")
            hidden = mapping.errors - min(len(mapping.error_details), max_errors)
            if hidden > 0:
                lines.append(f"    ... and {hidden} more")

    lines.extend([
        "",
        RULE,
        "Summary",
        RULE,
        f"Mappings:  {len(result.results)}",
        f"Processed: {result.total_processed}",
        f"Created:   {result.total_created}",
        f"Updated:   {result.total_updated}",
        f"Skipped:   {result.total_skipped}",
        f"Errors:    {result.total_errors}",
        f"Duration:  {result.duration_seconds:.2f}s",
    ])

    if result.cancelled:
        lines.append("Status:    CANCELLED")
    elif result.success:
        lines.append("Status:    SUCCESS")
    else:
        lines.append("Status:    FAILED")

    return "\n".join(lines)
