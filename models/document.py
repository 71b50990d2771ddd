from sqlalchemy import Column, BigInteger, Integer, String, Text, DateTime, JSON, Index
from sqlalchemy.dialects.postgresql import JSONB
from datetime import datetime, timezone
from models.base import Base


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class StoredDocument(Base):
    """
    One normalized document in the store.

    Design Decisions:
    - (collection, doc_id) is the natural key; doc_id comes from the source
    - metadata is JSONB on PostgreSQL, plain JSON elsewhere
    - content_hash lets readers detect changes without loading the body
    """
    __tablename__ = "documents"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)

    collection = Column(String(200), nullable=False, index=True)
    doc_id = Column(String(500), nullable=False)

    doc_metadata = Column("metadata", JSON().with_variant(JSONB, "postgresql"), nullable=False, default=dict)
    body = Column(Text, nullable=False, default="")
    content_hash = Column(String(64), nullable=False, index=True)

    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("idx_documents_collection_doc_id", "collection", "doc_id", unique=True),
    )
