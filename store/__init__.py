"""
Document store clients.

Modules:
    base: UpsertClient contract consumed by the pipeline
    memory: Dict-backed client for previews and tests
    sql_client: SQLAlchemy async client over the documents table
"""

__all__ = [
    "UpsertClient",
    "InMemoryUpsertClient",
    "SQLUpsertClient",
]
