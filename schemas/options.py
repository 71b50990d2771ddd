"""
Run-wide options for one pipeline invocation
"""

from pydantic import BaseModel, ConfigDict, Field
from core.config import settings


class PipelineOptions(BaseModel):
    """
    Flags shared by every mapping in a run.

    Mapping policies may override skip_existing and force dry_run on.
    """

    model_config = ConfigDict(frozen=True)

    dry_run: bool = False
    skip_existing: bool = False
    verbose: bool = False

    record_concurrency: int = Field(default_factory=lambda: settings.RECORD_CONCURRENCY, ge=1)
    mapping_concurrency: int = Field(default_factory=lambda: settings.MAPPING_CONCURRENCY, ge=1)
    max_error_details: int = Field(default_factory=lambda: settings.MAX_ERROR_DETAILS, ge=0)
