"""
SQLAlchemy ORM models for the SQL-backed document store.

Models:
    base: Base declarative class and shared enums (MappingStatus, UpsertOutcome)
    document: Stored documents keyed by (collection, doc_id)

Usage:
    from models.base import Base, MappingStatus, UpsertOutcome
    from models.document import StoredDocument
"""

__all__ = [
    "Base",
    "MappingStatus",
    "UpsertOutcome",
    "StoredDocument",
]
