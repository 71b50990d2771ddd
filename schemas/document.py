"""
Pydantic schema for the normalized document written to the store
"""

from pydantic import BaseModel, Field, field_validator
from typing import Dict, Any
import hashlib
import json


class Document(BaseModel):
    """
    Normalized unit written to the store.

    Ensures:
    - id and collection are present and non-blank
    - metadata is always a dict
    - content_hash is stable regardless of metadata key order
    """

    id: str = Field(..., min_length=1, max_length=500)
    collection: str = Field(..., min_length=1, max_length=200)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    body: str = ""

    @field_validator("id", "collection")
    @classmethod
    def strip_identifier(cls, v):
        """Reject identifiers that are blank after stripping"""
        v = v.strip()
        if not v:
            raise ValueError("Identifier cannot be empty after stripping")
        return v

    @field_validator("metadata", mode="before")
    @classmethod
    def clean_metadata(cls, v):
        """Ensure metadata is a dict"""
        if v is None:
            return {}
        if not isinstance(v, dict):
            raise ValueError("metadata must be a mapping")
        return v

    @field_validator("body", mode="before")
    @classmethod
    def clean_body(cls, v):
        if v is None:
            return ""
        return str(v)

    def content_hash(self) -> str:
        """SHA-256 over metadata and body; id and collection are not part of it."""
        return compute_content_hash(self.metadata, self.body)


def compute_content_hash(metadata: Dict[str, Any], body: str) -> str:
    payload = json.dumps(
        {"metadata": metadata or {}, "body": body or ""},
        sort_keys=True,
        ensure_ascii=False,
        default=str,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
